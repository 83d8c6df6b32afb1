"""Recording configuration and result models."""

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from ..capture.window import CaptureTarget


@dataclass(frozen=True)
class RecordConfig:
    """Immutable inputs of one recording session.

    The session keeps a reference to ``target`` but does not own it.
    """
    target: CaptureTarget
    output_dir: Path
    device: Optional[str] = None  # None selects the default monitor device
    audio_extension: str = "mp3"


@dataclass(frozen=True)
class RecordedData:
    """Artifacts produced by a completed recording session."""
    audio_path: Path
    screenshot_path: Path
    duration: timedelta

    @property
    def duration_seconds(self) -> float:
        return self.duration.total_seconds()

    def format_duration(self) -> str:
        """Render the duration as ``MM:SS``."""
        total = int(self.duration.total_seconds())
        return f"{total // 60:02d}:{total % 60:02d}"
