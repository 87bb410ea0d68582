from __future__ import annotations

import json
import logging
from threading import Lock

import numpy as np
from PIL import Image
from rembg import new_session

from erase_background.domain.errors import BackendFailureError
from erase_background.domain.mask import Mask
from erase_background.domain.pixel_buffer import PixelBuffer
from erase_background.domain.segmentation_backend import SegmentationBackend
from erase_background.infrastructure.image_conversion import pixel_buffer_to_image

logger = logging.getLogger("erase_background.backend")


class RembgSegmentationBackend(SegmentationBackend):
    name = "rembg"

    def __init__(self, model_name: str = "u2net") -> None:
        self._model_name = model_name
        # Keep one session alive to avoid reloading model every request.
        self._session = new_session(model_name)
        # onnxruntime sessions are shared; one inference at a time.
        self._lock = Lock()

    @property
    def model_name(self) -> str:
        return self._model_name

    def infer(self, image: PixelBuffer) -> Mask:
        source = pixel_buffer_to_image(image).convert("RGB")

        try:
            with self._lock:
                masks = self._session.predict(source)
        except Exception as exc:  # noqa: BLE001
            raise BackendFailureError(f"Segmentation model {self._model_name} failed: {exc}") from exc

        if not masks:
            raise BackendFailureError(f"Segmentation model {self._model_name} returned no mask")

        mask_image = masks[0].convert("L")
        if mask_image.size != image.size:
            logger.debug(
                json.dumps(
                    {
                        "event": "mask_resized",
                        "model": self._model_name,
                        "from": list(mask_image.size),
                        "to": list(image.size),
                    }
                )
            )
            mask_image = mask_image.resize(image.size, Image.Resampling.BILINEAR)

        values = np.asarray(mask_image, dtype=np.float32) / 255.0
        return Mask(image.width, image.height, values)
