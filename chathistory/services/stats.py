# chathistory/services/stats.py
from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class RequestStats:
    """Per-request counters; created by the service and passed down explicitly."""
    started: float = field(default_factory=time.perf_counter)
    db_queries: int = 0
    cache_hits: int = 0
    dropped_rows: int = 0

    def query(self) -> None:
        self.db_queries += 1

    @property
    def duration_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)

    def as_log_fields(self) -> str:
        return (
            f"duration={self.duration_ms}ms db_queries={self.db_queries} "
            f"cache_hits={self.cache_hits} dropped={self.dropped_rows}"
        )
