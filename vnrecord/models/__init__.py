"""Data models for the VNRecord application."""

from .record import RecordConfig, RecordedData
from .session import SessionPaths, SessionState

__all__ = [
    "RecordConfig",
    "RecordedData",
    "SessionPaths",
    "SessionState",
]
