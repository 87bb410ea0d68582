from __future__ import annotations

import json
import logging
import time
from concurrent.futures import Executor
from functools import partial
from threading import Lock
from typing import Callable, Hashable

from erase_background.application.mask_compositor import MaskCompositor
from erase_background.domain.errors import (
    BackendFailureError,
    BackgroundRemovalError,
    ErrorKind,
    InvariantViolationError,
)
from erase_background.domain.mask import Mask
from erase_background.domain.pixel_buffer import PixelBuffer
from erase_background.domain.removal import (
    RemovalCancelled,
    RemovalRequest,
    RemovalResult,
    RequestState,
)
from erase_background.domain.segmentation_backend import SegmentationBackend
from erase_background.infrastructure.metrics import MetricsStore, metrics

logger = logging.getLogger("erase_background.engine")

OnFinish = Callable[[RemovalResult], None]

_TRANSITIONS: dict[RequestState, frozenset[RequestState]] = {
    RequestState.PENDING: frozenset({RequestState.RUNNING, RequestState.CANCELLED}),
    RequestState.RUNNING: frozenset(
        {RequestState.SUCCEEDED, RequestState.FAILED, RequestState.CANCELLED}
    ),
}


class RemovalTask:
    """Caller-side handle for one submitted request."""

    def __init__(self, request: RemovalRequest) -> None:
        self._request = request
        self._state = RequestState.PENDING
        self._lock = Lock()

    @property
    def request(self) -> RemovalRequest:
        return self._request

    @property
    def state(self) -> RequestState:
        with self._lock:
            return self._state

    @property
    def done(self) -> bool:
        return self.state.is_terminal

    def cancel(self) -> None:
        self._request.cancellation.cancel()

    def _transition(self, target: RequestState) -> None:
        with self._lock:
            if target not in _TRANSITIONS.get(self._state, frozenset()):
                raise InvariantViolationError(
                    f"Illegal request transition {self._state.value} -> {target.value}"
                )
            self._state = target


class BackgroundRemovalEngine:
    """Runs segmentation and compositing on a caller-supplied executor.

    Every submitted request ends in exactly one ``on_finish`` call unless it
    is cancelled, in which case the callback is suppressed. The engine behaves
    identically for every SegmentationBackend; a build without segmentation
    is just an engine wired to the unavailable backend.
    """

    def __init__(
        self,
        backend: SegmentationBackend,
        compositor: MaskCompositor | None = None,
        max_image_pixels: int | None = None,
        metrics_store: MetricsStore | None = None,
    ) -> None:
        self._backend = backend
        self._compositor = compositor or MaskCompositor()
        self._max_image_pixels = max_image_pixels
        self._metrics = metrics_store or metrics
        self._in_flight: set[Hashable] = set()
        self._in_flight_lock = Lock()

    @property
    def backend(self) -> SegmentationBackend:
        return self._backend

    @property
    def in_flight_count(self) -> int:
        with self._in_flight_lock:
            return len(self._in_flight)

    def remove_background(
        self,
        request: RemovalRequest | PixelBuffer,
        executor: Executor,
        on_finish: OnFinish,
    ) -> RemovalTask:
        if isinstance(request, PixelBuffer):
            request = RemovalRequest(request)
        task = RemovalTask(request)
        claimed = self._claim(request.token)
        self._metrics.incr("removals_submitted_total")

        try:
            executor.submit(partial(self._run, task, on_finish, claimed))
        except RuntimeError as exc:
            # Executor already shut down: the caller is gone, nothing to deliver to.
            if claimed:
                self._release(request.token)
            task._transition(RequestState.CANCELLED)
            self._metrics.record_outcome(RequestState.CANCELLED)
            logger.info(
                json.dumps(
                    {"event": "removal_not_scheduled", "token": str(request.token), "reason": str(exc)}
                )
            )

        return task

    def _run(self, task: RemovalTask, on_finish: OnFinish, claimed: bool) -> None:
        request = task.request
        try:
            request.cancellation.raise_if_cancelled()
            task._transition(RequestState.RUNNING)
            started = time.perf_counter()
            if claimed:
                result = self._execute(request)
            else:
                result = self._failure(
                    request,
                    ErrorKind.INVALID_INPUT,
                    f"A removal for token {request.token!r} is already in flight",
                )
            request.cancellation.raise_if_cancelled()
        except RemovalCancelled:
            task._transition(RequestState.CANCELLED)
            self._metrics.record_outcome(RequestState.CANCELLED)
            logger.info(json.dumps({"event": "removal_cancelled", "token": str(request.token)}))
            return
        finally:
            if claimed:
                self._release(request.token)

        state = RequestState.SUCCEEDED if result.is_success else RequestState.FAILED
        task._transition(state)
        self._metrics.record_outcome(state, result.error_kind)
        self._metrics.observe_duration(time.perf_counter() - started)

        try:
            on_finish(result)
        except Exception:  # noqa: BLE001
            logger.exception(json.dumps({"event": "on_finish_failed", "token": str(request.token)}))

    def _execute(self, request: RemovalRequest) -> RemovalResult:
        image = request.image
        cancellation = request.cancellation
        try:
            image.validate(self._max_image_pixels)
            cancellation.raise_if_cancelled()
            mask = self._segment(image)
            cancellation.raise_if_cancelled()
            output = self._composite(image, mask)
        except BackgroundRemovalError as exc:
            return self._failure(request, exc.kind, str(exc) or exc.kind.value, exc)
        except RemovalCancelled:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._failure(
                request, ErrorKind.INVARIANT_VIOLATION, f"Unexpected engine error: {exc!r}", exc
            )

        logger.info(
            json.dumps(
                {
                    "event": "removal_succeeded",
                    "token": str(request.token),
                    "backend": self._backend.name,
                    "width": output.width,
                    "height": output.height,
                }
            )
        )
        return RemovalResult.success(output)

    def _segment(self, image: PixelBuffer) -> Mask:
        try:
            return self._backend.infer(image)
        except InvariantViolationError as exc:
            raise BackendFailureError(f"{self._backend.name} backend produced an invalid mask: {exc}") from exc
        except BackgroundRemovalError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise BackendFailureError(f"{self._backend.name} backend failed: {exc}") from exc

    def _composite(self, image: PixelBuffer, mask: Mask) -> PixelBuffer:
        try:
            return self._compositor.apply(image, mask)
        except BackgroundRemovalError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise InvariantViolationError(f"Compositing failed: {exc}") from exc

    def _failure(
        self,
        request: RemovalRequest,
        kind: ErrorKind,
        message: str,
        exc: BaseException | None = None,
    ) -> RemovalResult:
        payload = json.dumps(
            {
                "event": "removal_failed",
                "token": str(request.token),
                "backend": self._backend.name,
                "kind": kind.value,
                "error": message,
            }
        )
        if kind is ErrorKind.INVARIANT_VIOLATION:
            logger.error(payload, exc_info=exc)
        elif kind is ErrorKind.BACKEND_FAILURE:
            logger.warning(payload)
        else:
            logger.info(payload)
        return RemovalResult.failure(kind, message)

    def _claim(self, token: Hashable) -> bool:
        with self._in_flight_lock:
            if token in self._in_flight:
                return False
            self._in_flight.add(token)
            self._metrics.set_gauge("removals_in_flight", len(self._in_flight))
            return True

    def _release(self, token: Hashable) -> None:
        with self._in_flight_lock:
            self._in_flight.discard(token)
            self._metrics.set_gauge("removals_in_flight", len(self._in_flight))
