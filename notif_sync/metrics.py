"""
In-process metrics for the sync client.

Counts requests, pushes and relists. Push routing and relists are also
broken down per category, so the shutdown snapshot shows which lists the
client actually kept refreshing.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Any

from .categories import Category


class MetricsCollector:
    """Counters, gauges and per-category counts for one client."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._per_category: dict[str, dict[Category, int]] = defaultdict(lambda: defaultdict(int))
        self._gauges: dict[str, float] = {}
        self._started = time.monotonic()

    def inc(self, name: str, value: int = 1, category: Category | None = None) -> None:
        """Increment a counter, and its per-category count when a category is given."""
        self._counters[name] += value
        if category is not None:
            self._per_category[name][category] += value

    def set_gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    def get(self, name: str, category: Category | None = None) -> int | float:
        if category is not None:
            return self._per_category.get(name, {}).get(category, 0)
        if name in self._gauges:
            return self._gauges[name]
        return self._counters.get(name, 0)

    def snapshot(self) -> dict[str, Any]:
        return {
            "uptime_seconds": round(time.monotonic() - self._started, 3),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "per_category": {
                name: {category.value: count for category, count in counts.items()}
                for name, counts in self._per_category.items()
            },
        }
