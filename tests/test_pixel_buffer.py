from __future__ import annotations

import numpy as np
import pytest

from erase_background.domain.errors import (
    BackendFailureError,
    ErrorKind,
    InvalidInputError,
    InvariantViolationError,
    UnsupportedOperationError,
)
from erase_background.domain.mask import Mask
from erase_background.domain.pixel_buffer import PixelBuffer, PixelFormat
from erase_background.domain.removal import CancellationToken, RemovalCancelled, RemovalResult


def _rgba(width: int = 4, height: int = 3) -> PixelBuffer:
    return PixelBuffer(width, height, PixelFormat.RGBA, bytes(width * height * 4))


def test_validate_accepts_consistent_buffer() -> None:
    _rgba().validate()
    PixelBuffer(2, 2, PixelFormat.RGB, bytes(12)).validate()


@pytest.mark.parametrize(
    'buffer',
    [
        PixelBuffer(4, 3, PixelFormat.RGBA, b''),
        PixelBuffer(0, 3, PixelFormat.RGBA, bytes(4)),
        PixelBuffer(4, -1, PixelFormat.RGBA, bytes(4)),
        PixelBuffer(4, 3, PixelFormat.RGBA, bytes(4 * 3 * 3)),
        PixelBuffer(2, 2, 'CMYK', bytes(16)),  # type: ignore[arg-type]
    ],
)
def test_validate_rejects_malformed_buffers(buffer: PixelBuffer) -> None:
    with pytest.raises(InvalidInputError):
        buffer.validate()


@pytest.mark.parametrize('width, height', [('4', 3), (4, 3.0), (True, 1)])
def test_validate_rejects_non_integer_dimensions(width, height) -> None:
    with pytest.raises(InvalidInputError):
        PixelBuffer(width, height, PixelFormat.RGBA, bytes(48)).validate()


def test_validate_rejects_large_pixel_count() -> None:
    with pytest.raises(InvalidInputError):
        _rgba(200, 200).validate(max_pixels=10_000)


def test_invalid_input_error_is_a_value_error() -> None:
    assert issubclass(InvalidInputError, ValueError)
    assert InvalidInputError.kind is ErrorKind.INVALID_INPUT


def test_mask_rejects_wrong_shape() -> None:
    with pytest.raises(InvariantViolationError):
        Mask(4, 3, np.ones((4, 3), dtype=np.float32))


def test_mask_rejects_out_of_range_confidence() -> None:
    with pytest.raises(InvariantViolationError):
        Mask(2, 2, np.full((2, 2), 1.5, dtype=np.float32))


@pytest.mark.parametrize('bad', [np.nan, np.inf, -np.inf])
def test_mask_rejects_non_finite_confidence(bad: float) -> None:
    with pytest.raises(InvariantViolationError):
        Mask(2, 1, np.array([[bad, 0.5]], dtype=np.float32))


def test_mask_values_are_read_only_copies() -> None:
    values = np.zeros((2, 2), dtype=np.float32)
    mask = Mask(2, 2, values)
    values[0, 0] = 1.0
    assert mask.values[0, 0] == 0.0
    with pytest.raises(ValueError):
        mask.values[0, 0] = 1.0


def test_result_get_or_raise() -> None:
    image = _rgba()
    assert RemovalResult.success(image).get_or_raise() is image

    failed = RemovalResult.failure(ErrorKind.UNSUPPORTED_OPERATION, 'not in this build')
    assert not failed.is_success
    with pytest.raises(UnsupportedOperationError, match='not in this build'):
        failed.get_or_raise()

    with pytest.raises(BackendFailureError):
        RemovalResult.failure(ErrorKind.BACKEND_FAILURE, 'oom').get_or_raise()


def test_cancellation_token() -> None:
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel()
    assert token.cancelled
    with pytest.raises(RemovalCancelled):
        token.raise_if_cancelled()


def test_success_without_image_raises() -> None:
    with pytest.raises(InvariantViolationError):
        RemovalResult().get_or_raise()
