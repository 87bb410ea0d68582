from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    BACKEND_FAILURE = "backend_failure"
    INVARIANT_VIOLATION = "invariant_violation"


class BackgroundRemovalError(Exception):
    kind: ErrorKind = ErrorKind.BACKEND_FAILURE


class InvalidInputError(BackgroundRemovalError, ValueError):
    """Malformed, empty or unsupported pixel buffer."""

    kind = ErrorKind.INVALID_INPUT


class UnsupportedOperationError(BackgroundRemovalError):
    """This build ships without a segmentation capability."""

    kind = ErrorKind.UNSUPPORTED_OPERATION


class BackendFailureError(BackgroundRemovalError):
    """The segmentation model or its runtime failed during inference."""

    kind = ErrorKind.BACKEND_FAILURE


class InvariantViolationError(BackgroundRemovalError):
    """Internal contract breach. Indicates a bug, not a bad request."""

    kind = ErrorKind.INVARIANT_VIOLATION


_ERRORS_BY_KIND: dict[ErrorKind, type[BackgroundRemovalError]] = {
    ErrorKind.INVALID_INPUT: InvalidInputError,
    ErrorKind.UNSUPPORTED_OPERATION: UnsupportedOperationError,
    ErrorKind.BACKEND_FAILURE: BackendFailureError,
    ErrorKind.INVARIANT_VIOLATION: InvariantViolationError,
}


def error_for_kind(kind: ErrorKind, message: str) -> BackgroundRemovalError:
    return _ERRORS_BY_KIND[kind](message)
