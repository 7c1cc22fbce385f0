"""
TrendDetector tests
"""

from datetime import date, timedelta

from conftest import milk

from herd_analytics import Trend, detect_trend, is_long_trend
from herd_analytics.services.trend import trend_for_event


def series(*kgs, start=date(2024, 1, 1)):
    """Oldest first, one week apart."""
    return [milk("A", kg, start + timedelta(weeks=i)) for i, kg in enumerate(kgs)]


class TestDetectTrend:
    def test_no_history(self):
        result = detect_trend([])
        assert result.trend == Trend.NONE
        assert result.recent == ()

    def test_single(self):
        result = detect_trend(series(2.0))
        assert result.trend == Trend.SINGLE
        assert not result.is_long_trend
        assert len(result.recent) == 1

    def test_up_down(self):
        assert detect_trend(series(2.0, 2.5)).trend == Trend.UP
        assert detect_trend(series(2.5, 2.0)).trend == Trend.DOWN

    def test_margin_is_strict(self):
        """A delta of exactly the margin is stable"""
        assert detect_trend(series(2.0, 2.5), margin=0.5).trend == Trend.STABLE
        assert detect_trend(series(2.5, 2.0), margin=0.5).trend == Trend.STABLE
        assert detect_trend(series(0.0, 0.15), margin=0.15).trend == Trend.STABLE
        assert detect_trend(series(0.15, 0.0), margin=0.15).trend == Trend.STABLE

    def test_default_margin_boundary(self):
        # deltas of 0.125 and 0.25 sit on either side of 0.15 without rounding noise
        assert detect_trend(series(1.0, 1.125)).trend == Trend.STABLE
        assert detect_trend(series(1.0, 1.25)).trend == Trend.UP

    def test_uses_two_most_recent_regardless_of_input_order(self):
        history = list(reversed(series(1.0, 3.0, 2.0)))
        result = detect_trend(history)
        assert result.trend == Trend.DOWN
        assert result.difference == -1.0
        assert [e.kg for e in result.recent] == [2.0, 3.0]

    def test_same_day_reentry_replaces_reading(self):
        history = series(2.0, 5.0) + [milk("A", 2.0, date(2024, 1, 8))]
        result = detect_trend(history)
        assert result.trend == Trend.STABLE
        assert result.difference == 0.0
        assert [e.kg for e in result.recent] == [2.0, 2.0]


class TestLongTrend:
    def test_two_consecutive_rises(self):
        assert is_long_trend(series(1.0, 1.5, 2.0))
        assert detect_trend(series(1.0, 1.5, 2.0)).is_long_trend

    def test_two_consecutive_falls(self):
        assert is_long_trend(series(2.0, 1.5, 1.0))

    def test_direction_change(self):
        assert not is_long_trend(series(1.0, 2.0, 1.5))

    def test_stable_leg_breaks_it(self):
        assert not is_long_trend(series(1.0, 1.05, 2.0))

    def test_insufficient_history(self):
        assert not is_long_trend(series(1.0, 2.0))

    def test_corrected_reading_counts_once(self):
        # 1.0 -> 1.5 -> 1.5, last reading corrected up to 2.0
        history = series(1.0, 1.5, 1.5) + [milk("A", 2.0, date(2024, 1, 15))]
        assert is_long_trend(history)


class TestTrendForEvent:
    def test_against_previous_event(self):
        history = series(2.0, 3.0, 1.0)
        assert trend_for_event(history, history[1]) == Trend.UP
        assert trend_for_event(history, history[2]) == Trend.DOWN

    def test_first_event_is_single(self):
        history = series(2.0, 3.0)
        assert trend_for_event(history, history[0]) == Trend.SINGLE

    def test_previous_day_reentry_is_used(self):
        history = series(2.0, 3.0) + [milk("A", 2.9, date(2024, 1, 1))]
        assert trend_for_event(history, history[1]) == Trend.STABLE
