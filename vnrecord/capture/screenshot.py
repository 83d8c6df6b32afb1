"""Persist a still image of a capture target."""

import logging
from pathlib import Path

from ..errors import ScreenshotCaptureFailed, ScreenshotSaveFailed, WindowCaptureError
from .window import CaptureTarget

logger = logging.getLogger(__name__)


class ScreenshotCapturer:
    """Adapter between a capture target and a PNG file on disk."""

    def __init__(self, image_format: str = "PNG"):
        self.image_format = image_format

    def capture_and_save(self, target: CaptureTarget, path: Path) -> None:
        """Capture ``target`` once and write the image to ``path``.

        Raises:
            ScreenshotCaptureFailed: If the target could not produce an image
            ScreenshotSaveFailed: If the image could not be encoded or written
        """
        try:
            image = target.capture_image()
        except (WindowCaptureError, OSError) as e:
            raise ScreenshotCaptureFailed(f"Failed to capture screenshot of {target}: {e}") from e

        try:
            image.save(path, format=self.image_format)
        except (OSError, ValueError, KeyError) as e:
            raise ScreenshotSaveFailed(f"Failed to save screenshot to {path}: {e}") from e

        logger.info(f"Screenshot saved to {path} ({image.width}x{image.height})")
