"""Output file storage for recordings."""

from .file_manager import RecordingFiles, default_output_dir

__all__ = [
    "RecordingFiles",
    "default_output_dir",
]
