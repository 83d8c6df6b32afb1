"""Output file naming and lookup for recordings."""

import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List

from ..models.session import SessionPaths


logger = logging.getLogger(__name__)

AUDIO_SUFFIX = "_audio"
SCREENSHOT_SUFFIX = "_screenshot"
SCREENSHOT_EXTENSION = "png"


def default_output_dir() -> Path:
    """Per-user data directory used when no output directory is configured."""
    data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(data_home) if data_home else Path.home() / ".local" / "share"
    return base / "vn_record"


def session_prefix(timestamp: float) -> str:
    """Name prefix shared by all files of a session: whole Unix seconds."""
    return str(int(timestamp))


class RecordingFiles:
    """Manages the flat directory that recordings are written to.

    Files are named ``{unix_seconds}_audio.{ext}`` and
    ``{unix_seconds}_screenshot.png``. Two sessions started within the same
    second map to the same names.
    """

    def __init__(self, output_dir: Path):
        """Initialize with the directory recordings are stored in.

        Args:
            output_dir: Directory for audio and screenshot files
        """
        self.output_dir = Path(output_dir)

    def ensure_directory(self) -> None:
        """Create the output directory if needed."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {self.output_dir}")

    def paths_for(self, timestamp: float, audio_extension: str = "mp3") -> SessionPaths:
        """Compute the file paths of a session started at ``timestamp``."""
        prefix = session_prefix(timestamp)
        return SessionPaths(
            prefix=prefix,
            audio_path=self.output_dir / f"{prefix}{AUDIO_SUFFIX}.{audio_extension}",
            screenshot_path=self.output_dir / f"{prefix}{SCREENSHOT_SUFFIX}.{SCREENSHOT_EXTENSION}",
        )

    def reserve(self, timestamp: float, audio_extension: str = "mp3") -> SessionPaths:
        """Reserve the paths of a new session.

        The files are not created. An existing file under the same name is
        reported, since the new session will overwrite it.
        """
        self.ensure_directory()
        paths = self.paths_for(timestamp, audio_extension)
        for path in (paths.audio_path, paths.screenshot_path):
            if path.exists():
                logger.warning(f"{path} already exists and will be overwritten by session {paths.prefix}")
        return paths

    def list_recordings(self, audio_extension: str = "mp3") -> List[SessionPaths]:
        """List recordings that have an audio file, oldest first."""
        if not self.output_dir.is_dir():
            return []

        recordings = []
        for path in self.output_dir.glob(f"*{AUDIO_SUFFIX}.{audio_extension}"):
            prefix = path.name[: -len(f"{AUDIO_SUFFIX}.{audio_extension}")]
            if not prefix.isdigit():
                continue
            recordings.append(self.paths_for(int(prefix), audio_extension))

        recordings.sort(key=lambda p: int(p.prefix))
        logger.debug(f"Found {len(recordings)} recordings in {self.output_dir}")
        return recordings

    def latest(self, audio_extension: str = "mp3") -> Optional[SessionPaths]:
        """Most recent recording, or None if there is none."""
        recordings = self.list_recordings(audio_extension)
        return recordings[-1] if recordings else None

    def get_storage_stats(self, audio_extension: str = "mp3") -> Dict[str, Any]:
        """Get storage usage statistics.

        Returns:
            Dictionary with storage statistics
        """
        total_size = 0
        recordings = self.list_recordings(audio_extension)
        for paths in recordings:
            for path in (paths.audio_path, paths.screenshot_path):
                if path.exists():
                    total_size += path.stat().st_size

        return {
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "recording_count": len(recordings),
            "output_directory": str(self.output_dir)
        }
