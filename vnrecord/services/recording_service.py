"""Core recording service that manages the recording lifecycle for a caller such as a UI."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from ..audio.pipeline import AudioCapturePipeline
from ..audio.probe import DurationProbe
from ..audio.trim import SilenceTrimmer
from ..capture.screenshot import ScreenshotCapturer
from ..capture.window import CaptureTarget
from ..config import VNRecordConfig
from ..errors import RecordError
from ..models.record import RecordConfig, RecordedData
from .record_session import RecordSession

logger = logging.getLogger(__name__)


class RecordingService:
    """Owns at most one active recording session and remembers the last result."""

    def __init__(self, config: VNRecordConfig):
        """Initialize recording service.

        Args:
            config: Application configuration
        """
        self.config = config
        self.session: Optional[RecordSession] = None
        self._stopping: Optional[RecordSession] = None
        self.last_recorded: Optional[RecordedData] = None

        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

        self.pipeline = AudioCapturePipeline(
            capture_command=config.get_command('audio.capture_command'),
            encode_command=config.get_command('audio.encode_command'),
            stop_timeout_seconds=config.get_float('audio.stop_timeout_seconds'),
        )
        min_size = int(config.get('audio.min_file_size_bytes', 500))
        self.trimmer = SilenceTrimmer(
            sox_binary=config.get('trim.sox_binary', 'sox'),
            threshold=config.get('trim.threshold', '1%'),
            min_silence_seconds=config.get_float('trim.min_silence_seconds'),
            min_file_size=min_size,
            timeout_seconds=config.get_float('trim.timeout_seconds'),
        )
        self.probe = DurationProbe(
            soxi_binary=config.get('probe.soxi_binary', 'soxi'),
            min_file_size=min_size,
            timeout_seconds=config.get_float('probe.timeout_seconds'),
        )
        self.screenshotter = ScreenshotCapturer()

        logger.info(f"RecordingService ready, output directory: {config.get_output_directory()}")

    @property
    def is_recording(self) -> bool:
        return self.session is not None

    @property
    def is_stopping(self) -> bool:
        """True while a stopped session is still being post-processed."""
        return self._stopping is not None

    def elapsed(self) -> timedelta:
        """Time since the active session started, zero when idle."""
        session = self.session
        return session.elapsed if session else timedelta(0)

    def start_recording(self, target: CaptureTarget) -> Dict[str, Any]:
        """Start recording audio, to be finished with a screenshot of ``target``.

        Refused while another session is active or still being stopped.

        Args:
            target: Window or screen region captured when the recording stops

        Returns:
            Result dictionary with success status and details
        """
        with self._lock:
            return self._start_locked(target)

    def _start_locked(self, target: CaptureTarget) -> Dict[str, Any]:
        if self.session is not None:
            return {
                "success": False,
                "error": "Already recording",
                "audio_path": str(self.session.audio_path)
            }
        if self._stopping is not None:
            return {
                "success": False,
                "error": "Previous recording is still stopping",
                "audio_path": str(self._stopping.audio_path)
            }

        record_config = RecordConfig(
            target=target,
            output_dir=self.config.get_output_directory(),
            device=self.config.get('audio.device'),
            audio_extension=self.config.get('audio.extension', 'mp3'),
        )
        try:
            self.session = RecordSession.start(
                record_config,
                pipeline=self.pipeline,
                trimmer=self.trimmer,
                probe=self.probe,
                screenshotter=self.screenshotter,
                trim=bool(self.config.get('trim.enabled', True)),
            )
        except RecordError as e:
            logger.error(f"Error starting recording: {e}")
            return {
                "success": False,
                "error": str(e)
            }

        logger.info(f"Started recording {target}")
        return {
            "success": True,
            "audio_path": str(self.session.audio_path),
            "screenshot_path": str(self.session.screenshot_path),
            "started_at": datetime.fromtimestamp(self.session.start_time).isoformat()
        }

    def _claim_for_stop_locked(self) -> Optional[RecordSession]:
        """Move the active session into the stopping slot."""
        session = self.session
        if session is not None:
            self.session = None
            self._stopping = session
        return session

    def stop_recording(self) -> Dict[str, Any]:
        """Stop recording and return results. Blocks until post-processing is done.

        Returns:
            Result dictionary with the recorded files and duration
        """
        with self._lock:
            session = self._claim_for_stop_locked()

        if session is None:
            return {
                "success": False,
                "error": "Not recording"
            }
        return self._finish_stop(session)

    def _finish_stop(self, session: RecordSession) -> Dict[str, Any]:
        try:
            data = session.stop()
        except RecordError as e:
            logger.error(f"Error stopping recording: {e}")
            return {
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
                "audio_path": str(session.audio_path)
            }
        finally:
            with self._lock:
                self._stopping = None

        self.last_recorded = data
        return {
            "success": True,
            "audio_path": str(data.audio_path),
            "screenshot_path": str(data.screenshot_path),
            "duration_seconds": data.duration_seconds,
            "stopped_at": datetime.now().isoformat()
        }

    def stop_recording_async(self) -> "Future[Dict[str, Any]]":
        """Run ``stop_recording`` on a worker thread."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="RecordStop")
        return self._executor.submit(self.stop_recording)

    def toggle_recording(self, target: CaptureTarget) -> Dict[str, Any]:
        """Stop the active recording, or start one if idle."""
        with self._lock:
            if self.session is None:
                return self._start_locked(target)
            session = self._claim_for_stop_locked()
        return self._finish_stop(session)

    def cleanup(self) -> None:
        """Clean up service resources."""
        with self._lock:
            session = self.session
            self.session = None

        if session is not None:
            session.abort()

        # Waits for an in-flight stop_recording_async to finish
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

        logger.info("RecordingService cleaned up")
