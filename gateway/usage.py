import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable

from gateway.routing import TIERS


@dataclass(frozen=True)
class UsageSnapshot:
    total_requests: int
    total_cost_usd: float
    model_usage: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "totalRequests": self.total_requests,
            "totalCostUsd": self.total_cost_usd,
            "modelUsageCount": dict(self.model_usage),
        }


class UsageMetrics:
    """
    Request and estimated-cost counters shared by every request of one gateway.

    record() and snapshot() each run in a single critical section, so a
    snapshot never sees total_requests from one update and model_usage from
    another. A threading lock is used so the counters stay correct whether
    callers are event-loop tasks or worker threads. Nothing awaits while
    holding it.
    """

    def __init__(self, tiers: Iterable[str] = TIERS):
        self._lock = threading.Lock()
        self._total_requests = 0
        self._total_cost_usd = 0.0
        self._model_usage = {tier: 0 for tier in tiers}

    def record(self, tier: str, cost_delta: float) -> None:
        with self._lock:
            self._total_requests += 1
            self._total_cost_usd += cost_delta
            self._model_usage[tier] = self._model_usage.get(tier, 0) + 1

    def snapshot(self) -> UsageSnapshot:
        with self._lock:
            return UsageSnapshot(self._total_requests, self._total_cost_usd, dict(self._model_usage))
