"""In-process counters and timings for transforms and previews.

Usage:
    from cutout_viewer.image_engine.metrics import metrics
    metrics.inc("preview.discarded")
    with metrics.timed("transform.cutout"):
        ...
    metrics.count("preview.discarded")
"""

from __future__ import annotations

import time
from collections import Counter, defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from typing import Any


@dataclass(frozen=True, slots=True)
class TimingSummary:
    count: int
    total: float
    longest: float

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


class Metrics:
    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: Counter[str] = Counter()
        self._timings: defaultdict[str, list[float]] = defaultdict(list)

    def inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[key] += int(amount)

    def count(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                self._timings[key].append(elapsed)

    def timing(self, key: str) -> TimingSummary:
        with self._lock:
            samples = list(self._timings.get(key, ()))
        return TimingSummary(len(samples), sum(samples), max(samples, default=0.0))

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {k: list(v) for k, v in self._timings.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = Metrics()
