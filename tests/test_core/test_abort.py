"""
Тесты стратегий остановки.
"""

import pytest

from lanekmeans.core.abort import (
    ImprovementThreshold,
    MaxIterations,
    MovingAverageImprovement,
    NoImprovementPatience,
)
from lanekmeans.core.errors import KMeansConfigurationError

INF = float("inf")


def _replay(tracker, distsums, max_iter=100):
    """Прогоняет последовательность distsum и возвращает номер итерации останова."""
    prev = INF
    for i, new in enumerate(distsums):
        if tracker(i, prev, new, max_iter):
            return i
        prev = new
    return None


class TestMaxIterations:
    def test_stops_at_limit_only(self):
        tracker = MaxIterations().start()
        assert _replay(tracker, [5.0] * 10, max_iter=4) == 3
        assert _replay(MaxIterations().start(), [5.0] * 3, max_iter=4) is None


class TestImprovementThreshold:
    def test_first_iteration_continues(self):
        assert ImprovementThreshold().start()(0, INF, 10.0, 100) is False

    def test_stops_without_improvement(self):
        assert _replay(ImprovementThreshold().start(), [10.0, 8.0, 7.0, 7.0, 6.0]) == 3

    def test_threshold(self):
        assert _replay(ImprovementThreshold(0.5).start(), [10.0, 8.0, 7.8, 7.0]) == 2

    def test_limit(self):
        assert _replay(ImprovementThreshold().start(), [10.0, 9.0, 8.0], max_iter=2) == 1


class TestNoImprovementPatience:
    def test_streak_resets_on_improvement(self):
        tracker = NoImprovementPatience(patience=3).start()
        sums = [10.0, 11.0, 10.5, 10.5, 10.6, 10.7, 1.0]
        assert _replay(tracker, sums) == 5

    def test_abort_on_negative(self):
        tracker = NoImprovementPatience(patience=3, abort_on_negative=True).start()
        assert _replay(tracker, [10.0, 9.0, 9.5, 8.0]) == 2

    def test_trackers_are_independent(self):
        strategy = NoImprovementPatience(patience=2)
        a, b = strategy.start(), strategy.start()

        assert a(0, INF, 5.0, 100) is False
        assert a(1, 5.0, 6.0, 100) is False
        # Второй трекер не видит серию первого
        assert b(0, INF, 5.0, 100) is False
        assert b(1, 5.0, 4.0, 100) is False
        assert a(2, 6.0, 7.0, 100) is True

    def test_invalid_patience(self):
        with pytest.raises(KMeansConfigurationError):
            NoImprovementPatience(patience=0)


class TestMovingAverageImprovement:
    def test_window_average(self):
        tracker = MovingAverageImprovement(window=3, threshold=0.0).start()
        # Улучшения: 2, -1, -1 -> среднее 0 на третьем сравнении
        assert _replay(tracker, [10.0, 8.0, 9.0, 10.0, 1.0]) == 3

    def test_noisy_but_improving(self):
        tracker = MovingAverageImprovement(window=2, threshold=0.0).start()
        assert _replay(tracker, [10.0, 8.0, 8.5, 6.0, 6.2, 4.0]) is None

    def test_invalid_window(self):
        with pytest.raises(KMeansConfigurationError):
            MovingAverageImprovement(window=0)
