"""Unit tests for the snapshot cache."""
from common.cache import SnapshotCache


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return [self.calls]


class TestSnapshotCache:
    """Test the TTL snapshot cache."""

    def test_value_is_reused(self):
        cache = SnapshotCache[list](ttl=60)
        compute = Counter()

        assert cache.get_or_compute(compute) == [1]
        assert cache.get_or_compute(compute) == [1]
        assert compute.calls == 1

    def test_get_before_compute_returns_none(self):
        cache = SnapshotCache[list](ttl=60)

        assert cache.get() is None

    def test_invalidate_forces_recompute(self):
        cache = SnapshotCache[list](ttl=60)
        compute = Counter()

        cache.get_or_compute(compute)
        cache.invalidate()

        assert cache.get() is None
        assert cache.get_or_compute(compute) == [2]

    def test_zero_ttl_disables_caching(self):
        cache = SnapshotCache[list](ttl=0)
        compute = Counter()

        cache.get_or_compute(compute)
        cache.get_or_compute(compute)

        assert compute.calls == 2
        assert cache.get() is None

    def test_result_computed_across_invalidation_is_not_stored(self):
        cache = SnapshotCache[list](ttl=60)

        def compute_while_writer_lands():
            cache.invalidate()
            return ["stale"]

        assert cache.get_or_compute(compute_while_writer_lands) == ["stale"]
        assert cache.get() is None
