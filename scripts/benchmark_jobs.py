from __future__ import annotations

import argparse
import logging
import time

from PIL import Image, ImageDraw

from erase_background.config import settings
from erase_background.infrastructure.image_conversion import pixel_buffer_from_image
from erase_background.infrastructure.metrics import metrics
from erase_background.tasks.background_jobs import process_batch_images_job


def make_image(size: int) -> Image.Image:
    img = Image.new('RGB', (size, size), 'white')
    draw = ImageDraw.Draw(img)
    margin = size // 6
    draw.rectangle((margin, margin, size - margin, size - margin), fill='green')
    return img


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument('--count', type=int, default=10)
    parser.add_argument('--size', type=int, default=256)
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level)

    images = [pixel_buffer_from_image(make_image(args.size)) for _ in range(args.count)]
    started = time.time()
    results = process_batch_images_job(images)
    elapsed = time.time() - started

    failures = sorted({result.error_kind.value for result in results if not result.is_success})
    print({
        'submitted': args.count,
        'succeeded': sum(1 for result in results if result.is_success),
        'failure_kinds': failures,
        'elapsed_sec': round(elapsed, 2),
        'images_per_sec': round(args.count / elapsed, 2) if elapsed > 0 else None,
    })
    print(metrics.to_prometheus_text(), end='')


if __name__ == '__main__':
    main()
