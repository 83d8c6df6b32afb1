"""Duration probing of recorded audio files via soxi."""

import logging
import math
import subprocess
from datetime import timedelta
from pathlib import Path
from typing import Optional

from ..errors import ProbeFailed

logger = logging.getLogger(__name__)

# Encoders leave a few hundred bytes of headers even when nothing was captured
MIN_AUDIO_FILE_SIZE = 500


def is_effectively_empty(path: Path, min_size: int = MIN_AUDIO_FILE_SIZE) -> bool:
    """Return True if ``path`` is too small to hold any audio.

    Raises:
        OSError: If the file cannot be stat'ed
    """
    return Path(path).stat().st_size < min_size


class DurationProbe:
    """Ask ``soxi`` for the playback duration of an audio file."""

    def __init__(
        self,
        soxi_binary: str = "soxi",
        min_file_size: int = MIN_AUDIO_FILE_SIZE,
        timeout_seconds: Optional[float] = 30.0,
    ):
        self.soxi_binary = soxi_binary
        self.min_file_size = min_file_size
        self.timeout_seconds = timeout_seconds

    def duration_of(self, path: Path) -> timedelta:
        """Return the duration of ``path``.

        Files below the minimum size are reported as zero without running soxi.

        Raises:
            ProbeFailed: If the file is missing, soxi fails, or its output is not a positive duration
        """
        path = Path(path)
        try:
            if is_effectively_empty(path, self.min_file_size):
                logger.debug(f"{path} is below {self.min_file_size} bytes, duration is zero")
                return timedelta(0)
        except OSError as e:
            raise ProbeFailed(f"Cannot read {path}: {e}") from e

        try:
            result = subprocess.run(
                [self.soxi_binary, "-D", str(path)],
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ProbeFailed(f"{self.soxi_binary} failed on {path}: {e}") from e

        if result.returncode != 0:
            raise ProbeFailed(
                f"{self.soxi_binary} exited with {result.returncode} on {path}: {result.stderr.strip()}"
            )

        text = result.stdout.strip()
        try:
            seconds = float(text)
        except ValueError as e:
            raise ProbeFailed(f"Unexpected {self.soxi_binary} output for {path}: {text!r}") from e
        if not math.isfinite(seconds) or seconds <= 0:
            raise ProbeFailed(f"Invalid duration for {path}: {text!r}")

        return timedelta(seconds=seconds)
