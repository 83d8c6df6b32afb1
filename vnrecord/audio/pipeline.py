"""Chained capture and encode processes that record audio into a file."""

import logging
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..errors import PipelineStartFailed, PipelineStopFailed

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "auto"

# pw-record streams raw 48kHz stereo s16 from the sink monitor to stdout,
# lame reads it from stdin and writes a VBR mp3.
DEFAULT_CAPTURE_COMMAND = [
    "pw-record", "--target", "{device}", "-P", "{ stream.capture.sink=true }", "-",
]
DEFAULT_ENCODE_COMMAND = [
    "lame", "-r", "-s", "48", "-m", "s", "-V7", "-", "{output}",
]


def render_command(template: Sequence[str], **values: str) -> List[str]:
    """Substitute ``{name}`` placeholders in each argument of ``template``.

    Only the named placeholders are replaced, so arguments such as pw-record's
    property string may contain literal braces.
    """
    command = []
    for arg in template:
        for key, value in values.items():
            arg = arg.replace("{" + key + "}", value)
        command.append(arg)
    return command


class PipelineHandle:
    """Exclusive owner of the capture and encode processes of one recording.

    Releasing the handle, through ``force_kill()``, leaving a ``with`` block or
    garbage collection, guarantees neither process is still running.
    """

    def __init__(self, capture: subprocess.Popen, encode: subprocess.Popen, output_path: Path):
        self.capture = capture
        self.encode = encode
        self.output_path = output_path
        self.released = False

    @property
    def pids(self) -> Tuple[int, int]:
        return self.capture.pid, self.encode.pid

    @property
    def alive(self) -> bool:
        """True while either process is still running."""
        return self.capture.poll() is None or self.encode.poll() is None

    def capture_returncode(self) -> Optional[int]:
        """Exit code of the capture stage, or None if it is still running."""
        return self.capture.poll()

    def request_stop(self) -> None:
        """Ask the capture stage to finish; the encoder follows once its input closes."""
        if self.capture.poll() is None:
            self.capture.terminate()

    def wait(self, timeout: Optional[float] = None) -> Tuple[int, int]:
        """Block until both processes exit.

        Returns:
            Exit codes of the capture and encode stages

        Raises:
            subprocess.TimeoutExpired: If either process outlives ``timeout``
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        codes = []
        for proc in (self.capture, self.encode):
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            codes.append(proc.wait(timeout=remaining))
        return codes[0], codes[1]

    def release(self) -> None:
        """Mark the processes as reaped."""
        self.released = True

    def force_kill(self, timeout: float = 5.0) -> None:
        """Kill both processes. Safe to call any number of times."""
        for proc in (self.capture, self.encode):
            if proc.poll() is None:
                proc.kill()
            try:
                proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.error(f"Process {proc.pid} did not exit {timeout}s after SIGKILL")
        if not self.released:
            logger.debug(f"Pipeline {self.pids} force-killed")
        self.released = True

    def __enter__(self) -> "PipelineHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.force_kill()

    def __del__(self):
        """Ensure the processes are killed if the handle is dropped."""
        if not getattr(self, "released", True):
            self.force_kill()


class AudioCapturePipeline:
    """Spawns and stops the capture | encode process chain."""

    def __init__(
        self,
        capture_command: Optional[Sequence[str]] = None,
        encode_command: Optional[Sequence[str]] = None,
        stop_timeout_seconds: float = 10.0,
        kill_timeout_seconds: float = 5.0,
    ):
        """Initialize the pipeline.

        Args:
            capture_command: argv template of the capture stage; ``{device}`` is substituted
            encode_command: argv template of the encode stage; ``{output}`` is substituted
            stop_timeout_seconds: How long ``graceful_stop`` waits for both stages
            kill_timeout_seconds: How long to wait for a killed process to be reaped
        """
        self.capture_command = list(capture_command or DEFAULT_CAPTURE_COMMAND)
        self.encode_command = list(encode_command or DEFAULT_ENCODE_COMMAND)
        self.stop_timeout_seconds = stop_timeout_seconds
        self.kill_timeout_seconds = kill_timeout_seconds

    def start(self, output_path: Path, device: Optional[str] = None) -> PipelineHandle:
        """Start recording ``device`` into ``output_path``.

        Args:
            output_path: File the encoder writes
            device: Sink/monitor to capture from; defaults to the system default

        Returns:
            Handle owning both processes

        Raises:
            PipelineStartFailed: If either process could not be spawned
        """
        output_path = Path(output_path)
        capture_cmd = render_command(self.capture_command, device=device or DEFAULT_DEVICE)
        encode_cmd = render_command(self.encode_command, output=str(output_path))

        # Children get their own session so a terminal Ctrl+C is not delivered
        # to them.
        try:
            capture = subprocess.Popen(
                capture_cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise PipelineStartFailed(f"Failed to start capture stage {capture_cmd[0]}: {e}") from e

        try:
            encode = subprocess.Popen(
                encode_cmd,
                stdin=capture.stdout,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            capture.kill()
            capture.wait(timeout=self.kill_timeout_seconds)
            capture.stdout.close()
            raise PipelineStartFailed(f"Failed to start encode stage {encode_cmd[0]}: {e}") from e

        # Only the encoder holds the read end now, so the capture stage sees
        # a broken pipe if the encoder dies.
        capture.stdout.close()

        handle = PipelineHandle(capture, encode, output_path)
        logger.info(f"Audio pipeline started (pids {handle.pids}) -> {output_path}")
        return handle

    def graceful_stop(self, handle: PipelineHandle) -> None:
        """Stop the capture stage and wait for the encoder to finish the file.

        Blocks until both processes have exited. On return the output file is
        complete and safe to post-process.

        Raises:
            PipelineStopFailed: If the processes could not be stopped in time;
                they are force-killed before this is raised
        """
        if handle.released:
            logger.debug(f"Pipeline {handle.pids} already released")
            return

        returncode = handle.capture_returncode()
        if returncode is not None:
            logger.warning(
                f"Capture stage exited before stop was requested (exit code {returncode})"
            )
        else:
            try:
                handle.request_stop()
            except OSError as e:
                handle.force_kill(self.kill_timeout_seconds)
                raise PipelineStopFailed(f"Failed to signal capture stage: {e}") from e

        try:
            capture_code, encode_code = handle.wait(self.stop_timeout_seconds)
        except subprocess.TimeoutExpired as e:
            handle.force_kill(self.kill_timeout_seconds)
            raise PipelineStopFailed(
                f"Audio pipeline did not exit within {self.stop_timeout_seconds}s"
            ) from e

        if encode_code != 0:
            logger.warning(f"Encode stage exited with code {encode_code}")
        handle.release()
        logger.info(f"Audio pipeline stopped (capture={capture_code}, encode={encode_code})")

    def force_kill(self, handle: PipelineHandle) -> None:
        """Unconditionally kill both stages. Idempotent and bounded."""
        handle.force_kill(self.kill_timeout_seconds)
