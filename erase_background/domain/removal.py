from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable

from erase_background.domain.errors import ErrorKind, InvariantViolationError, error_for_kind
from erase_background.domain.pixel_buffer import PixelBuffer


class RemovalCancelled(Exception):
    """Raised at a step boundary once the request's token has been cancelled."""


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RemovalCancelled()


class RequestState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({RequestState.SUCCEEDED, RequestState.FAILED, RequestState.CANCELLED})


@dataclass
class RemovalRequest:
    image: PixelBuffer
    token: Hashable = field(default_factory=lambda: str(uuid.uuid4()))
    cancellation: CancellationToken = field(default_factory=CancellationToken)


@dataclass(frozen=True)
class RemovalResult:
    image: PixelBuffer | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def success(cls, image: PixelBuffer) -> RemovalResult:
        return cls(image=image)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> RemovalResult:
        return cls(error_kind=kind, message=message)

    @property
    def is_success(self) -> bool:
        return self.error_kind is None

    def get_or_raise(self) -> PixelBuffer:
        if self.error_kind is not None:
            raise error_for_kind(self.error_kind, self.message or self.error_kind.value)
        if self.image is None:
            raise InvariantViolationError("Successful result carries no image")
        return self.image
