from __future__ import annotations

import os


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class Settings:
    segmentation_backend: str = os.getenv("SEGMENTATION_BACKEND", "rembg").strip().lower()
    rembg_model: str = os.getenv("REMBG_MODEL", "u2net")

    mask_threshold: float | None = _optional_float("MASK_THRESHOLD")
    mask_feather_radius: float = float(os.getenv("MASK_FEATHER_RADIUS", "0"))
    mask_alpha_boost: float = float(os.getenv("MASK_ALPHA_BOOST", "1.0"))

    max_image_pixels: int = int(os.getenv("MAX_IMAGE_PIXELS", str(20_000_000)))

    worker_concurrency: int = int(os.getenv("WORKER_CONCURRENCY", "4"))
    job_wait_timeout_seconds: float | None = _optional_float("JOB_WAIT_TIMEOUT_SECONDS")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
