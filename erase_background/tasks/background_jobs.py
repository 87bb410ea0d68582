from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock

from erase_background.application.background_removal_engine import BackgroundRemovalEngine
from erase_background.application.mask_compositor import CompositorOptions, MaskCompositor
from erase_background.config import settings
from erase_background.domain.pixel_buffer import PixelBuffer
from erase_background.domain.removal import RemovalRequest, RemovalResult
from erase_background.infrastructure.backends import build_segmentation_backend

logger = logging.getLogger("erase_background.jobs")

_engine: BackgroundRemovalEngine | None = None
_engine_lock = Lock()


def build_engine() -> BackgroundRemovalEngine:
    options = CompositorOptions(
        threshold=settings.mask_threshold,
        feather_radius=settings.mask_feather_radius,
        alpha_boost=settings.mask_alpha_boost,
    )
    return BackgroundRemovalEngine(
        build_segmentation_backend(settings),
        MaskCompositor(options),
        max_image_pixels=settings.max_image_pixels,
    )


def get_engine() -> BackgroundRemovalEngine:
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = build_engine()
        return _engine


def process_single_image_job(image: PixelBuffer, timeout: float | None = None) -> RemovalResult:
    return process_batch_images_job([image], timeout=timeout)[0]


def process_batch_images_job(
    images: list[PixelBuffer],
    timeout: float | None = None,
) -> list[RemovalResult]:
    """Remove backgrounds from every image concurrently; results keep input order.

    Raises TimeoutError if the batch does not finish within ``timeout``
    seconds. Unfinished requests are cancelled before raising.
    """
    if not images:
        return []

    engine = get_engine()
    wait_timeout = timeout if timeout is not None else settings.job_wait_timeout_seconds
    futures: list[Future[RemovalResult]] = [Future() for _ in images]
    tasks = []

    executor = ThreadPoolExecutor(
        max_workers=max(1, min(settings.worker_concurrency, len(images))),
        thread_name_prefix="erase-bg",
    )
    try:
        for image, future in zip(images, futures):
            tasks.append(
                engine.remove_background(RemovalRequest(image), executor, future.set_result)
            )
        done, pending = wait(futures, timeout=wait_timeout)
    except BaseException:
        executor.shutdown(wait=False)
        raise

    if pending:
        for task in tasks:
            task.cancel()
        # Queued requests still run, see their cancelled token and release it.
        executor.shutdown(wait=False)
        logger.warning(
            json.dumps({"event": "batch_timeout", "total": len(images), "finished": len(done)})
        )
        raise TimeoutError(f"{len(pending)} of {len(images)} removals did not finish in time")

    executor.shutdown(wait=True)

    results = [future.result() for future in futures]
    logger.info(
        json.dumps(
            {
                "event": "batch_finished",
                "total": len(results),
                "succeeded": sum(1 for result in results if result.is_success),
            }
        )
    )
    return results
