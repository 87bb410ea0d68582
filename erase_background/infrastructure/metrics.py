from __future__ import annotations

from collections import defaultdict
from threading import Lock
from time import time

from erase_background.domain.errors import ErrorKind
from erase_background.domain.removal import RequestState


class MetricsStore:
    """In-process counters and gauges for removal outcomes."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: dict[str, int] = defaultdict(int)
        self._gauges: dict[str, float] = defaultdict(float)
        self._last_update_ts: int = int(time())

    def incr(self, key: str, value: int = 1) -> None:
        with self._lock:
            self._counters[key] += value
            self._last_update_ts = int(time())

    def set_gauge(self, key: str, value: float) -> None:
        with self._lock:
            self._gauges[key] = value
            self._last_update_ts = int(time())

    def record_outcome(self, state: RequestState, error_kind: ErrorKind | None = None) -> None:
        with self._lock:
            self._counters[f"removals_{state.value}_total"] += 1
            if error_kind is not None:
                self._counters[f"removals_failed_{error_kind.value}_total"] += 1
            self._last_update_ts = int(time())

    def observe_duration(self, seconds: float) -> None:
        with self._lock:
            self._counters["removal_duration_count"] += 1
            total = self._gauges["removal_duration_seconds_sum"] + seconds
            self._gauges["removal_duration_seconds_sum"] = total
            self._gauges["removal_duration_seconds_last"] = seconds
            self._last_update_ts = int(time())

    def snapshot(self) -> dict[str, int | float]:
        with self._lock:
            merged: dict[str, int | float] = dict(self._counters)
            merged.update(self._gauges)
            merged["metrics_last_update_ts"] = self._last_update_ts
            return merged

    def to_prometheus_text(self) -> str:
        lines = []
        for key, value in sorted(self.snapshot().items()):
            lines.append(f"erase_bg_{key.lower().replace('-', '_')} {value}")
        return "\n".join(lines) + "\n"


metrics = MetricsStore()
