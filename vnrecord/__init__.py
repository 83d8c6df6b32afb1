"""VNRecord: record system audio and finish each take with a screenshot."""

__version__ = "0.1.0"
