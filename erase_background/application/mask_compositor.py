from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageFilter

from erase_background.domain.errors import InvariantViolationError
from erase_background.domain.mask import Mask
from erase_background.domain.pixel_buffer import PixelBuffer, PixelFormat


@dataclass
class CompositorOptions:
    """Confidence-to-alpha settings.

    threshold=None blends softly everywhere: out_alpha = in_alpha * confidence.
    threshold=t cuts hard: confidence >= t keeps the input alpha, anything
    below t becomes fully transparent. feather_radius and alpha_boost reshape
    the confidence map first and are no-ops at their defaults.
    """

    threshold: float | None = None
    feather_radius: float = 0.0
    alpha_boost: float = 1.0


class MaskCompositor:
    def __init__(self, options: CompositorOptions | None = None) -> None:
        self._options = options or CompositorOptions()

    @property
    def options(self) -> CompositorOptions:
        return self._options

    def apply(self, image: PixelBuffer, mask: Mask) -> PixelBuffer:
        if mask.size != image.size:
            raise InvariantViolationError(
                f"Mask {mask.width}x{mask.height} does not match image {image.width}x{image.height}"
            )

        pixels = np.frombuffer(image.data, dtype=np.uint8).reshape(
            image.height, image.width, image.pixel_format.bytes_per_pixel
        )
        rgba = np.empty((image.height, image.width, 4), dtype=np.uint8)
        rgba[..., :3] = pixels[..., :3]
        if image.pixel_format.has_alpha:
            rgba[..., 3] = pixels[..., 3]
        else:
            rgba[..., 3] = 255

        confidence = self._refine_confidence(mask.values)
        alpha = rgba[..., 3].astype(np.float32) * confidence
        rgba[..., 3] = np.clip(np.rint(alpha), 0, 255).astype(np.uint8)

        return PixelBuffer(image.width, image.height, PixelFormat.RGBA, rgba.tobytes())

    def _refine_confidence(self, values: np.ndarray) -> np.ndarray:
        options = self._options
        confidence = values

        if options.feather_radius > 0:
            mask_image = Image.fromarray(np.rint(confidence * 255).astype(np.uint8))
            mask_image = mask_image.filter(ImageFilter.GaussianBlur(radius=options.feather_radius))
            confidence = np.asarray(mask_image, dtype=np.float32) / 255.0

        if abs(options.alpha_boost - 1.0) > 1e-3:
            boost = max(0.4, min(2.5, options.alpha_boost))
            confidence = np.clip((confidence - 0.5) * boost + 0.5, 0.0, 1.0)

        if options.threshold is not None:
            confidence = np.where(confidence >= options.threshold, 1.0, 0.0)

        return confidence.astype(np.float32, copy=False)
