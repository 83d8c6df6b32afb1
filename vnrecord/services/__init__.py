"""Services layer for VNRecord application logic."""

from .record_session import RecordSession
from .recording_service import RecordingService

__all__ = [
    "RecordSession",
    "RecordingService"
]
