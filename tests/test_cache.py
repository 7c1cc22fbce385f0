"""
Snapshot memoization tests
"""

from conftest import milk

from herd_analytics import rollup_history
from herd_analytics.cache import memoize_snapshot


class TestMemoizeSnapshot:
    def test_equal_snapshots_hit(self):
        cached_rollup = memoize_snapshot(rollup_history)
        first = cached_rollup([milk("A", 2.0), milk("B", 3.0)], granularity="year")
        second = cached_rollup([milk("A", 2.0), milk("B", 3.0)], granularity="year")

        assert first == second
        info = cached_rollup.cache_info()
        assert info.hits == 1 and info.misses == 1

    def test_flags_are_part_of_the_key(self):
        cached_rollup = memoize_snapshot(rollup_history)
        events = [milk("A", 2.0)]
        cached_rollup(events, granularity="year")
        cached_rollup(events, granularity="month")
        assert cached_rollup.cache_info().misses == 2

    def test_dict_arguments(self):
        calls = []

        def count_subjects(histories):
            calls.append(1)
            return sorted(histories)

        cached = memoize_snapshot(count_subjects)
        assert cached({"B": [milk("B", 1.0)], "A": [milk("A", 1.0)]}) == ["A", "B"]
        assert cached({"A": [milk("A", 1.0)], "B": [milk("B", 1.0)]}) == ["A", "B"]
        assert len(calls) == 1

    def test_callers_get_independent_results(self):
        cached_rollup = memoize_snapshot(rollup_history)
        events = [milk("A", 2.0)]
        first = cached_rollup(events)
        first.clear()
        second = cached_rollup(events)
        assert len(second) == 1
        assert cached_rollup.cache_info().hits == 1

    def test_clear(self):
        cached_rollup = memoize_snapshot(rollup_history)
        cached_rollup([milk("A", 2.0)])
        cached_rollup.cache_clear()
        assert cached_rollup.cache_info().currsize == 0
