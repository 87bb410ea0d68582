from __future__ import annotations

from erase_background.config import Settings, settings as default_settings
from erase_background.domain.segmentation_backend import SegmentationBackend
from erase_background.infrastructure.unavailable_segmentation_backend import (
    UnavailableSegmentationBackend,
)

BACKEND_CHOICES = ("rembg", "unavailable")


def build_segmentation_backend(config: Settings | None = None) -> SegmentationBackend:
    config = config or default_settings
    choice = config.segmentation_backend

    if choice == "unavailable":
        return UnavailableSegmentationBackend()
    if choice == "rembg":
        from erase_background.infrastructure.rembg_segmentation_backend import (
            RembgSegmentationBackend,
        )

        return RembgSegmentationBackend(config.rembg_model)

    raise ValueError(
        f"Unknown SEGMENTATION_BACKEND {choice!r}; expected one of {', '.join(BACKEND_CHOICES)}"
    )
