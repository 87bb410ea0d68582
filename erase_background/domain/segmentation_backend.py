from __future__ import annotations

from abc import ABC, abstractmethod

from erase_background.domain.mask import Mask
from erase_background.domain.pixel_buffer import PixelBuffer


class SegmentationBackend(ABC):
    name: str = "base"

    @abstractmethod
    def infer(self, image: PixelBuffer) -> Mask:
        """Return a foreground confidence mask matching the image dimensions.

        Raises InvalidInputError for unusable input, UnsupportedOperationError
        when segmentation is not available in this build, and
        BackendFailureError when the model fails. Makes a single attempt.
        """
