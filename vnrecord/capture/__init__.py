"""Screenshot capture of windows and screen regions."""

from .window import CaptureTarget, ScreenRegion
from .screenshot import ScreenshotCapturer

__all__ = [
    'CaptureTarget',
    'ScreenRegion',
    'ScreenshotCapturer'
]
