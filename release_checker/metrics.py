"""Plain-value counters describing checker activity.

Exporting them anywhere is left to whoever reads ``snapshot()``.
"""

import threading
from collections import Counter
from typing import Any


class CheckMetrics:
    """Thread-safe counters updated by the orchestrator."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.cycles_run = 0
        self.checks_attempted = 0
        self.retries = 0
        self.new_releases_found = 0
        self.failures: Counter[str] = Counter()

    def record_cycle(self) -> None:
        with self._lock:
            self.cycles_run += 1

    def record_attempt(self, retry: bool = False) -> None:
        with self._lock:
            self.checks_attempted += 1
            if retry:
                self.retries += 1

    def record_failure(self, kind: str) -> None:
        with self._lock:
            self.failures[kind] += 1

    def record_new_releases(self, count: int) -> None:
        with self._lock:
            self.new_releases_found += count

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "cycles_run": self.cycles_run,
                "checks_attempted": self.checks_attempted,
                "retries": self.retries,
                "new_releases_found": self.new_releases_found,
                "failures": dict(self.failures),
            }
