from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from erase_background.domain.errors import InvariantViolationError


@dataclass(frozen=True)
class Mask:
    """Per-pixel foreground confidence in [0.0, 1.0], shaped (height, width)."""

    width: int
    height: int
    values: np.ndarray

    def __post_init__(self) -> None:
        values = np.asarray(self.values, dtype=np.float32)
        if values.shape != (self.height, self.width):
            raise InvariantViolationError(
                f"Mask values shaped {values.shape} do not match {self.width}x{self.height}"
            )
        if not np.isfinite(values).all():
            raise InvariantViolationError("Mask confidence must be finite")
        if values.size and (float(values.min()) < 0.0 or float(values.max()) > 1.0):
            raise InvariantViolationError("Mask confidence must lie within [0.0, 1.0]")

        if values is self.values:
            values = values.copy()
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @classmethod
    def filled(cls, width: int, height: int, confidence: float) -> Mask:
        return cls(width, height, np.full((height, width), confidence, dtype=np.float32))
