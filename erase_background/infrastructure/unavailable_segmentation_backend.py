from __future__ import annotations

from erase_background.domain.errors import UnsupportedOperationError
from erase_background.domain.mask import Mask
from erase_background.domain.pixel_buffer import PixelBuffer
from erase_background.domain.segmentation_backend import SegmentationBackend


class UnavailableSegmentationBackend(SegmentationBackend):
    """Backend for builds shipped without an on-device segmentation model."""

    name = "unavailable"

    def __init__(self, reason: str = "Background removal is not available in this build") -> None:
        self._reason = reason

    def infer(self, image: PixelBuffer) -> Mask:
        raise UnsupportedOperationError(self._reason)
