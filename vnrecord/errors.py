"""Error types raised by recording sessions and their helpers."""


class RecordError(Exception):
    """Base class for every failure a recording session can report."""


class PipelineStartFailed(RecordError):
    """The capture/encode pipeline could not be spawned."""


class PipelineStopFailed(RecordError):
    """The capture/encode pipeline did not shut down cleanly."""


class TrimFailed(RecordError):
    """Silence trimming failed; the untrimmed file is left in place."""


class ProbeFailed(RecordError):
    """The duration of a recorded audio file could not be determined."""


class ScreenshotError(RecordError):
    """Base class for screenshot failures."""


class ScreenshotCaptureFailed(ScreenshotError):
    """The capture target could not produce an image."""


class ScreenshotSaveFailed(ScreenshotError):
    """The captured image could not be written to disk."""


class SessionStateError(RecordError):
    """An operation was attempted on a session in the wrong state."""


class WindowCaptureError(Exception):
    """Raised by capture targets when the window or screen is no longer capturable."""


class ConfigError(ValueError):
    """Invalid configuration file or value."""
