"""
Unit tests for the shared usage counters, including concurrent access.
"""
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from gateway.routing import CHEAP_TIER, EXPENSIVE_TIER
from gateway.usage import UsageMetrics


class TestUsageMetrics:

    def test_starts_at_zero_with_both_tiers(self):
        snap = UsageMetrics().snapshot()
        assert snap.total_requests == 0
        assert snap.total_cost_usd == 0.0
        assert snap.model_usage == {CHEAP_TIER: 0, EXPENSIVE_TIER: 0}

    def test_record_updates_all_fields(self):
        usage = UsageMetrics()
        usage.record(CHEAP_TIER, 2e-7)
        usage.record(EXPENSIVE_TIER, 3e-4)

        snap = usage.snapshot()
        assert snap.total_requests == 2
        assert snap.total_cost_usd == pytest.approx(2e-7 + 3e-4)
        assert snap.model_usage == {CHEAP_TIER: 1, EXPENSIVE_TIER: 1}

    def test_unknown_tier_keeps_totals_consistent(self):
        usage = UsageMetrics()
        usage.record("MidModel", 0.0)
        snap = usage.snapshot()
        assert snap.model_usage["MidModel"] == 1
        assert snap.total_requests == sum(snap.model_usage.values())

    def test_snapshot_is_a_copy(self):
        usage = UsageMetrics()
        snap = usage.snapshot()
        snap.model_usage[CHEAP_TIER] = 99
        assert usage.snapshot().model_usage[CHEAP_TIER] == 0

    def test_to_dict_wire_format(self):
        usage = UsageMetrics()
        usage.record(CHEAP_TIER, 0.5)
        assert usage.snapshot().to_dict() == {
            "totalRequests": 1,
            "totalCostUsd": 0.5,
            "modelUsageCount": {CHEAP_TIER: 1, EXPENSIVE_TIER: 0},
        }


class TestConcurrency:

    def test_no_lost_updates(self):
        usage = UsageMetrics()
        with ThreadPoolExecutor(max_workers=16) as pool:
            for _ in range(100):
                pool.submit(usage.record, CHEAP_TIER, 1e-7)

        snap = usage.snapshot()
        assert snap.total_requests == 100
        assert snap.model_usage[CHEAP_TIER] == 100
        assert snap.total_cost_usd == pytest.approx(100 * 1e-7)

    def test_snapshots_never_torn(self):
        usage = UsageMetrics()
        stop = threading.Event()
        torn = []

        def reader():
            while not stop.is_set():
                snap = usage.snapshot()
                if snap.total_requests != sum(snap.model_usage.values()):
                    torn.append(snap)

        def writer(tier):
            for _ in range(2000):
                usage.record(tier, 1e-6)

        readers = [threading.Thread(target=reader) for _ in range(2)]
        writers = [threading.Thread(target=writer, args=(t,)) for t in (CHEAP_TIER, EXPENSIVE_TIER) * 2]
        for t in readers + writers:
            t.start()
        for t in writers:
            t.join()
        stop.set()
        for t in readers:
            t.join()

        assert torn == []
        snap = usage.snapshot()
        assert snap.total_requests == 8000
        assert snap.model_usage == {CHEAP_TIER: 4000, EXPENSIVE_TIER: 4000}
