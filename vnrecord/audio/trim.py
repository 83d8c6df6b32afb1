"""Leading/trailing silence removal with sox."""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

from ..errors import TrimFailed
from .probe import MIN_AUDIO_FILE_SIZE, is_effectively_empty

logger = logging.getLogger(__name__)


class SilenceTrimmer:
    """Strip near-silence from both ends of an audio file, in place.

    sox's ``silence`` effect only trims the start of a stream, so the signal is
    trimmed, reversed, trimmed again and reversed back.
    """

    def __init__(
        self,
        sox_binary: str = "sox",
        threshold: str = "1%",
        min_silence_seconds: float = 0.1,
        min_file_size: int = MIN_AUDIO_FILE_SIZE,
        timeout_seconds: Optional[float] = 60.0,
    ):
        self.sox_binary = sox_binary
        self.threshold = threshold
        self.min_silence_seconds = min_silence_seconds
        self.min_file_size = min_file_size
        self.timeout_seconds = timeout_seconds

    def effects(self) -> List[str]:
        """sox effect chain removing leading then trailing silence."""
        strip = ["silence", "1", f"{self.min_silence_seconds:g}", self.threshold]
        return strip + ["reverse"] + strip + ["reverse"]

    @staticmethod
    def temp_path_for(path: Path) -> Path:
        # sox picks the output format from the extension, so keep it last
        return path.with_name(f"{path.stem}.tmp{path.suffix}")

    def trim(self, path: Path) -> bool:
        """Trim ``path`` in place.

        Args:
            path: Audio file to rewrite

        Returns:
            True if the file was rewritten, False if it was too small to bother

        Raises:
            TrimFailed: If sox could not produce a trimmed copy; ``path`` is left untouched
        """
        path = Path(path)
        try:
            if is_effectively_empty(path, self.min_file_size):
                logger.info(f"Skipping trim of {path}: below {self.min_file_size} bytes")
                return False
        except OSError as e:
            raise TrimFailed(f"Cannot read {path}: {e}") from e

        tmp_path = self.temp_path_for(path)
        cmd = [self.sox_binary, str(path), str(tmp_path)] + self.effects()
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_seconds)
        except (OSError, subprocess.TimeoutExpired) as e:
            self._discard(tmp_path)
            raise TrimFailed(f"{self.sox_binary} failed on {path}: {e}") from e

        if result.returncode != 0:
            self._discard(tmp_path)
            raise TrimFailed(
                f"{self.sox_binary} exited with {result.returncode} on {path}: {result.stderr.strip()}"
            )

        try:
            os.replace(tmp_path, path)
        except OSError as e:
            self._discard(tmp_path)
            raise TrimFailed(f"Failed to replace {path} with trimmed copy: {e}") from e

        logger.info(f"Trimmed silence from {path}")
        return True

    def _discard(self, tmp_path: Path) -> None:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {tmp_path}: {e}")
