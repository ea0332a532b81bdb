"""In-memory KPI tracking for the polling loop and transitions."""

from __future__ import annotations

import time
from collections import deque
from statistics import median
from threading import Lock
from typing import Any

ERROR_WINDOW_SEC = 60.0

DEFAULT_COUNTERS = (
    "polls_total",
    "fetch_failures_total",
    "alerts_total",
    "transitions_ok_total",
    "transitions_failed_total",
)


class KPIStore:
    """Thread-safe store for lightweight KPIs."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: dict[str, int] = {}
        self._errors: deque[float] = deque()
        self._fetch_latency_ms: deque[float] = deque(maxlen=50)
        self._active_orders = 0
        self._last_poll_ts: float | None = None
        self._initialize_default_counters()

    def _initialize_default_counters(self) -> None:
        for key in DEFAULT_COUNTERS:
            self._counters.setdefault(key, 0)

    def _prune(self, container: deque[float], now: float, window: float) -> None:
        while container and now - container[0] > window:
            container.popleft()

    def record_error(self, now: float | None = None) -> None:
        now_ts = now or time.time()
        with self._lock:
            self._errors.append(now_ts)
            self._prune(self._errors, now_ts, ERROR_WINDOW_SEC)

    def record_poll(self, active_orders: int, now: float | None = None) -> None:
        """Record a successful reconciliation and the resulting active count."""

        with self._lock:
            self._counters["polls_total"] = self._counters.get("polls_total", 0) + 1
            self._active_orders = max(0, active_orders)
            self._last_poll_ts = now or time.time()

    def update_fetch_latency(self, ms: float) -> None:
        if ms < 0:
            return
        with self._lock:
            self._fetch_latency_ms.append(float(ms))

    def increment_counter(self, key: str, amount: int = 1) -> None:
        """Increment a named counter used for diagnostics."""

        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get_counter(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def snapshot(self) -> dict[str, Any]:
        now_ts = time.time()
        with self._lock:
            self._prune(self._errors, now_ts, ERROR_WINDOW_SEC)
            latency = float(median(self._fetch_latency_ms)) if self._fetch_latency_ms else None
            return {
                "active_orders": self._active_orders,
                "errors_1m": len(self._errors),
                "fetch_latency_ms_median": latency,
                "last_poll_ts": self._last_poll_ts,
                "counters": dict(self._counters),
            }

    def reset(self) -> None:
        """Reset stored data (test helper)."""

        with self._lock:
            self._counters.clear()
            self._errors.clear()
            self._fetch_latency_ms.clear()
            self._active_orders = 0
            self._last_poll_ts = None
            self._initialize_default_counters()


METRICS = KPIStore()


def snapshot_kpis() -> dict[str, Any]:
    """Return a snapshot of current KPI values."""

    return METRICS.snapshot()
