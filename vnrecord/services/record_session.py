"""Recording session: audio capture from start() to a trimmed, probed file plus a screenshot."""

import logging
import time
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional

from ..audio.pipeline import AudioCapturePipeline, PipelineHandle
from ..audio.probe import DurationProbe
from ..audio.trim import SilenceTrimmer
from ..capture.screenshot import ScreenshotCapturer
from ..errors import (
    PipelineStopFailed,
    ProbeFailed,
    ScreenshotError,
    SessionStateError,
    TrimFailed,
)
from ..models.record import RecordConfig, RecordedData
from ..models.session import SessionState
from ..storage.file_manager import RecordingFiles

logger = logging.getLogger(__name__)


class RecordSession:
    """One bounded audio + screenshot capture.

    Create with ``RecordSession.start()`` and finish with exactly one call to
    ``stop()``. A session that is left without being stopped (``abort()``,
    leaving a ``with`` block, or garbage collection) has its capture processes
    killed and no post-processing done.

    ``stop()`` blocks on several external processes. Callers with a UI thread
    should run it in a worker (see ``RecordingService.stop_recording_async``).
    """

    def __init__(
        self,
        config: RecordConfig,
        audio_path: Path,
        screenshot_path: Path,
        handle: PipelineHandle,
        start_time: float,
        pipeline: AudioCapturePipeline,
        trimmer: Optional[SilenceTrimmer],
        probe: DurationProbe,
        screenshotter: ScreenshotCapturer,
    ):
        self.config = config
        self.audio_path = audio_path
        self.screenshot_path = screenshot_path
        self.start_time = start_time
        self.state = SessionState.ACTIVE

        self._handle = handle
        self._pipeline = pipeline
        self._trimmer = trimmer
        self._probe = probe
        self._screenshotter = screenshotter
        self._started_monotonic = time.monotonic()

    @classmethod
    def start(
        cls,
        config: RecordConfig,
        *,
        pipeline: Optional[AudioCapturePipeline] = None,
        trimmer: Optional[SilenceTrimmer] = None,
        probe: Optional[DurationProbe] = None,
        screenshotter: Optional[ScreenshotCapturer] = None,
        trim: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> "RecordSession":
        """Reserve output paths and start capturing audio.

        Args:
            config: Target window and output directory
            pipeline: Capture/encode pipeline; defaults to pw-record | lame
            trimmer: Silence trimmer; defaults to sox
            probe: Duration probe; defaults to soxi
            screenshotter: Screenshot writer
            trim: Set to False to keep the untrimmed recording
            clock: Source of the Unix timestamp used to name the files

        Returns:
            Active session

        Raises:
            PipelineStartFailed: If the audio pipeline could not be spawned
        """
        start_time = clock()
        paths = RecordingFiles(config.output_dir).reserve(start_time, config.audio_extension)

        pipeline = pipeline or AudioCapturePipeline()
        handle = pipeline.start(paths.audio_path, device=config.device)

        logger.info(f"Recording session {paths.prefix} started for {config.target}")
        return cls(
            config=config,
            audio_path=paths.audio_path,
            screenshot_path=paths.screenshot_path,
            handle=handle,
            start_time=start_time,
            pipeline=pipeline,
            trimmer=(trimmer or SilenceTrimmer()) if trim else None,
            probe=probe or DurationProbe(),
            screenshotter=screenshotter or ScreenshotCapturer(),
        )

    @property
    def elapsed(self) -> timedelta:
        """Time since the session started."""
        return timedelta(seconds=time.monotonic() - self._started_monotonic)

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def stop(self) -> RecordedData:
        """Stop capturing, post-process the audio and take the final screenshot.

        Trim failures are logged and the untrimmed file is kept. Every other
        failure is raised; files written so far stay on disk.

        Returns:
            Paths of the audio and screenshot files and the audio duration

        Raises:
            SessionStateError: If the session was already stopped or aborted
            PipelineStopFailed: If the audio pipeline did not shut down
            ProbeFailed: If the audio duration could not be read
            ScreenshotCaptureFailed: If the target could not be captured
            ScreenshotSaveFailed: If the screenshot could not be written
        """
        if self.state is not SessionState.ACTIVE:
            raise SessionStateError(f"Cannot stop a session that is {self.state.value}")
        self.state = SessionState.STOPPING

        try:
            data = self._finish()
        except BaseException:
            self.state = SessionState.ABORTED
            raise
        finally:
            # No-op after a graceful stop; reaps the processes otherwise.
            self._pipeline.force_kill(self._handle)

        self.state = SessionState.COMPLETED
        logger.info(
            f"Recording session finished: {data.audio_path.name} ({data.format_duration()}), "
            f"{data.screenshot_path.name}"
        )
        return data

    def _finish(self) -> RecordedData:
        try:
            self._pipeline.graceful_stop(self._handle)
        except PipelineStopFailed as e:
            logger.error(f"Failed to stop audio pipeline: {e}")
            raise

        self._log_untrimmed_duration()

        if self._trimmer is not None:
            try:
                self._trimmer.trim(self.audio_path)
            except TrimFailed as e:
                logger.warning(f"Keeping untrimmed audio: {e}")

        try:
            duration = self._probe.duration_of(self.audio_path)
        except ProbeFailed as e:
            logger.error(f"Failed to read audio duration: {e}")
            raise

        try:
            self._screenshotter.capture_and_save(self.config.target, self.screenshot_path)
        except ScreenshotError as e:
            logger.error(f"{e} (audio kept at {self.audio_path})")
            raise

        return RecordedData(
            audio_path=self.audio_path,
            screenshot_path=self.screenshot_path,
            duration=duration,
        )

    def _log_untrimmed_duration(self) -> None:
        try:
            duration = self._probe.duration_of(self.audio_path)
        except ProbeFailed as e:
            logger.debug(f"Could not probe untrimmed audio: {e}")
            return
        logger.info(f"Captured {duration.total_seconds():.2f}s of audio (before trim)")

    def abort(self) -> None:
        """Kill the capture processes without post-processing. Idempotent."""
        if self.state is SessionState.ACTIVE:
            self.state = SessionState.DROPPED
            logger.warning(f"Recording session dropped without stop, audio left at {self.audio_path}")
        self._pipeline.force_kill(self._handle)

    def __enter__(self) -> "RecordSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.abort()

    def __del__(self):
        """Ensure the capture processes are killed if the session is dropped."""
        handle = getattr(self, "_handle", None)
        if handle is not None and not handle.released:
            handle.force_kill()
