"""Session-related data models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class SessionState(Enum):
    """Lifecycle state of a recording session."""
    ACTIVE = "active"
    STOPPING = "stopping"
    COMPLETED = "completed"
    ABORTED = "aborted"
    DROPPED = "dropped"


@dataclass(frozen=True)
class SessionPaths:
    """Output files reserved for one session."""
    prefix: str
    audio_path: Path
    screenshot_path: Path
