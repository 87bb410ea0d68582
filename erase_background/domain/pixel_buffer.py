from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from erase_background.domain.errors import InvalidInputError


class PixelFormat(str, Enum):
    RGBA = "RGBA"
    RGB = "RGB"

    @property
    def bytes_per_pixel(self) -> int:
        return 4 if self is PixelFormat.RGBA else 3

    @property
    def has_alpha(self) -> bool:
        return self is PixelFormat.RGBA


@dataclass(frozen=True)
class PixelBuffer:
    """Decoded image: 8 bits per channel, rows packed top to bottom."""

    width: int
    height: int
    pixel_format: PixelFormat
    data: bytes

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def validate(self, max_pixels: int | None = None) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidInputError(f"Image {name} must be an int, got {type(value).__name__}")
        if not isinstance(self.pixel_format, PixelFormat):
            raise InvalidInputError(f"Unsupported pixel format: {self.pixel_format!r}")
        if not isinstance(self.data, bytes) or not self.data:
            raise InvalidInputError("Pixel buffer is empty")
        if self.width <= 0 or self.height <= 0:
            raise InvalidInputError(f"Invalid image dimensions {self.width}x{self.height}")

        expected = self.pixel_count * self.pixel_format.bytes_per_pixel
        if len(self.data) != expected:
            raise InvalidInputError(
                f"Pixel buffer length {len(self.data)} does not match "
                f"{self.width}x{self.height} {self.pixel_format.value} ({expected} bytes)"
            )
        if max_pixels is not None and self.pixel_count > max_pixels:
            raise InvalidInputError(f"Image too large in pixels. Max allowed is {max_pixels}")
