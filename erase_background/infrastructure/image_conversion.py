from __future__ import annotations

from PIL import Image

from erase_background.domain.errors import InvalidInputError
from erase_background.domain.pixel_buffer import PixelBuffer, PixelFormat


def pixel_buffer_from_image(image: Image.Image) -> PixelBuffer:
    """Copy an already decoded Pillow image into a PixelBuffer."""
    width, height = image.size
    if width <= 0 or height <= 0:
        raise InvalidInputError("Invalid image dimensions")

    if image.mode not in (PixelFormat.RGBA.value, PixelFormat.RGB.value):
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        image = image.convert("RGBA" if has_alpha else "RGB")

    return PixelBuffer(width, height, PixelFormat(image.mode), image.tobytes())


def pixel_buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    buffer.validate()
    try:
        return Image.frombytes(buffer.pixel_format.value, buffer.size, buffer.data)
    except ValueError as exc:
        raise InvalidInputError("Pixel data could not be read as an image") from exc
