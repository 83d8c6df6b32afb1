"""Main application entry point for VNRecord."""

import sys
import signal
import argparse
import logging
import threading
from pathlib import Path
from typing import Dict, Any, Optional

from rich.console import Console
from rich.table import Table

from . import __version__
from .capture.window import CaptureTarget, ScreenRegion
from .config import VNRecordConfig
from .services.recording_service import RecordingService

logger = logging.getLogger(__name__)

console = Console()


class Server:

    def __init__(self, config: VNRecordConfig, log_level: Optional[str] = None):
        self.config = config
        # Set up logging (override config with command line if specified)
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.stop_event = threading.Event()
        self.recording_service: Optional[RecordingService] = None

    def init(self):
        logger.info("Initializing services...")
        self.recording_service = RecordingService(self.config)

    def run(self, target: CaptureTarget, duration: int) -> Dict[str, Any]:
        """Record until ``duration`` seconds pass or a stop is requested."""
        result = self.recording_service.start_recording(target)
        if not result["success"]:
            return result

        console.print(f"[bold red]●[/bold red] Recording to {result['audio_path']} (Ctrl+C to stop)")
        try:
            self.stop_event.wait(duration if duration else None)
        finally:
            result = self.recording_service.stop_recording()
        return result

    def request_stop(self, signum=None, frame=None):
        self.stop_event.set()

    def cleanup(self):
        if self.recording_service:
            self.recording_service.cleanup()


FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logging(config: VNRecordConfig, level: str = "INFO") -> None:
    """Send everything to the log file and warnings to stderr.

    The file handler always records DEBUG; ``level`` gates the root logger.
    The stderr handler is skipped when ``logging.console_output`` is off.
    """
    log_file_path = config.get_log_file_path()
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    handlers = [_handler(logging.FileHandler(log_file_path), logging.DEBUG, FILE_FORMAT)]
    if config.get('logging.console_output', True):
        handlers.append(_handler(logging.StreamHandler(sys.stderr), logging.WARNING, CONSOLE_FORMAT))

    root_logger = logging.getLogger()
    for old in root_logger.handlers[:]:
        root_logger.removeHandler(old)
    root_logger.setLevel(level.upper())
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info(f"VNRecord {__version__} logging to {log_file_path} at {level.upper()}")


def parse_region(value: str) -> Dict[str, int]:
    """Parse ``LEFT,TOP,WIDTH,HEIGHT`` into an mss bounding box."""
    parts = value.split(",")
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("Region must be LEFT,TOP,WIDTH,HEIGHT, e.g. 0,0,1280,720")
    try:
        left, top, width, height = (int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError("Region must be LEFT,TOP,WIDTH,HEIGHT, e.g. 0,0,1280,720")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("Region width and height must be positive")
    return {"left": left, "top": top, "width": width, "height": height}


def print_result(result: Dict[str, Any]) -> None:
    if not result["success"]:
        console.print(f"[bold red]Recording failed:[/bold red] {result['error']}")
        if result.get("audio_path"):
            console.print(f"Audio left at {result['audio_path']}")
        return

    minutes, seconds = divmod(int(result["duration_seconds"]), 60)
    table = Table(title="Recorded", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Audio", result["audio_path"])
    table.add_row("Screenshot", result["screenshot_path"])
    table.add_row("Duration", f"{minutes:02d}:{seconds:02d}")
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="VNRecord - record system audio and finish with a screenshot",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        help="Directory for recordings (overrides config)"
    )

    parser.add_argument(
        "--device",
        type=str,
        help="Audio sink/monitor to record (default: auto)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Recording duration in seconds (0 = until Ctrl+C)"
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--monitor",
        type=int,
        default=1,
        help="Monitor to screenshot when recording stops (default: 1, the primary monitor)"
    )
    target.add_argument(
        "--region",
        type=parse_region,
        default=None,
        help="Screen rectangle to screenshot, as LEFT,TOP,WIDTH,HEIGHT"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"VNRecord v{__version__}"
    )
    return parser


def main() -> None:
    """Main entry point for VNRecord."""
    args = build_parser().parse_args()

    try:
        config = VNRecordConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(2)

    if args.output_dir:
        config.set('output.directory', str(Path(args.output_dir).expanduser().absolute()))
    if args.device:
        config.set('audio.device', args.device)

    server = Server(config, args.log_level)
    signal.signal(signal.SIGINT, server.request_stop)
    signal.signal(signal.SIGTERM, server.request_stop)

    target = ScreenRegion(monitor=args.monitor, region=args.region)
    try:
        server.init()
        result = server.run(target, args.duration)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        logger.error(f"Application error: {e}")
        server.cleanup()
        sys.exit(1)

    server.cleanup()
    print_result(result)
    if not result["success"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
