"""
Tests for rate and consistency statistics.
"""

import pytest

from algorithms.stats import (
    INITIAL_CONSISTENCY,
    INITIAL_RATE,
    EventStatistics,
    consistency_score,
)


class TestConsistencyScore:
    def test_initial_until_two_durations(self):
        assert consistency_score([]) == 100.0
        assert consistency_score([1234.0]) == 100.0

    def test_identical_durations_score_100(self):
        assert consistency_score([1000.0, 1000.0, 1000.0]) == pytest.approx(100.0)

    def test_population_std(self):
        # std of [900, 1100] is 100 -> 100 - 100/5 = 80
        assert consistency_score([900.0, 1100.0], scale=5.0) == pytest.approx(80.0)

    def test_clamped_at_zero(self):
        assert consistency_score([0.0, 10000.0], scale=5.0) == 0.0

    def test_strictly_decreasing_with_spread(self):
        spreads = [0.0, 20.0, 50.0, 100.0, 200.0]
        scores = [consistency_score([1000.0 - s, 1000.0 + s]) for s in spreads]

        assert all(0.0 <= s <= 100.0 for s in scores)
        assert all(a > b for a, b in zip(scores, scores[1:]))


class TestEventStatistics:
    def test_rejects_bad_arguments(self):
        with pytest.raises(ValueError):
            EventStatistics(duration_history_size=1)
        with pytest.raises(ValueError):
            EventStatistics(consistency_scale=0)

    def test_first_event_records_no_duration(self):
        stats = EventStatistics()
        stats.record(5000.0)

        assert stats.event_count == 1
        assert stats.durations == []
        assert stats.rate == INITIAL_RATE
        assert stats.consistency == INITIAL_CONSISTENCY

    def test_rate_after_two_events(self):
        stats = EventStatistics()
        stats.record(0.0)
        stats.record(30000.0)

        # 2 events over half a minute
        assert stats.rate == pytest.approx(4.0)
        # Only one duration so far
        assert stats.consistency == INITIAL_CONSISTENCY

    def test_consistency_after_two_durations(self):
        stats = EventStatistics(consistency_scale=5.0)
        for t in (0.0, 900.0, 2000.0):
            stats.record(t)

        assert stats.durations == [900.0, 1100.0]
        assert stats.consistency == pytest.approx(80.0)

    def test_duration_history_is_bounded(self):
        stats = EventStatistics(duration_history_size=3)
        for i in range(10):
            stats.record(i * 1000.0)

        assert len(stats.durations) == 3

    def test_reset(self):
        stats = EventStatistics()
        for t in (0.0, 500.0, 1700.0):
            stats.record(t)

        stats.reset()

        assert stats.event_count == 0
        assert stats.durations == []
        assert stats.last_event_time is None
        assert stats.to_dict() == {"events": 0, "rate_per_minute": 0.0, "consistency": 100.0}
