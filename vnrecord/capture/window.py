"""Capture targets: anything that can hand back a still image on demand."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import mss
import mss.exception
import numpy as np
from PIL import Image

from ..errors import WindowCaptureError

logger = logging.getLogger(__name__)


class CaptureTarget(ABC):
    """A window, monitor or region whose current contents can be captured."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable label for logs and UIs."""
        pass

    @abstractmethod
    def capture_image(self) -> Image.Image:
        """Capture the current contents as an RGB image.

        Raises:
            WindowCaptureError: If the target is no longer capturable
        """
        pass

    def __str__(self) -> str:
        return self.name


class ScreenRegion(CaptureTarget):
    """Capture a monitor, or a rectangle of the virtual screen, with mss."""

    def __init__(self, monitor: int = 1, region: Optional[Dict[str, int]] = None):
        """Initialize a screen capture target.

        Args:
            monitor: mss monitor index (0 is the whole virtual screen, 1 the primary monitor)
            region: Optional ``{"left", "top", "width", "height"}`` rectangle; overrides ``monitor``
        """
        self.monitor = monitor
        self.region = dict(region) if region else None

    @property
    def name(self) -> str:
        if self.region:
            r = self.region
            return f"region {r['width']}x{r['height']}+{r['left']}+{r['top']}"
        return f"monitor {self.monitor}"

    def _resolve_bbox(self, sct) -> Dict[str, int]:
        if self.region:
            return self.region
        if self.monitor >= len(sct.monitors):
            raise WindowCaptureError(
                f"Monitor {self.monitor} not available ({len(sct.monitors) - 1} connected)"
            )
        return dict(sct.monitors[self.monitor])

    def capture_image(self) -> Image.Image:
        try:
            with mss.mss() as sct:
                bbox = self._resolve_bbox(sct)
                shot = np.array(sct.grab(bbox))
        except mss.exception.ScreenShotError as e:
            raise WindowCaptureError(f"Failed to grab {self.name}: {e}") from e

        logger.debug(f"Captured {self.name}: {shot.shape[1]}x{shot.shape[0]}")
        # mss hands back BGRA
        return Image.fromarray(np.ascontiguousarray(shot[:, :, 2::-1]))
