"""
Стратегии остановки итераций.

Стратегия задаёт неизменяемую конфигурацию; на каждый запуск ``start()``
создаёт собственный трекер, поэтому одну стратегию можно передавать в
параллельные запуски. Трекер вызывается ровно один раз на границе итерации:

    tracker(iteration, prev_distsum, new_distsum, max_iter) -> bool

и возвращает True, если нужно остановиться. Любая стратегия останавливает
запуск, когда выполнено ``max_iter`` итераций.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Callable

from lanekmeans.core.errors import KMeansConfigurationError

AbortTracker = Callable[[int, float, float, int], bool]


def _limit_reached(iteration: int, max_iter: int) -> bool:
    return iteration + 1 >= max_iter


class AbortStrategy(ABC):
    """Базовый класс стратегий остановки."""

    @abstractmethod
    def start(self) -> AbortTracker:
        """Создаёт трекер для одного запуска."""
        raise NotImplementedError


@dataclass(frozen=True)
class MaxIterations(AbortStrategy):
    """Фиксированное число итераций."""

    def start(self) -> AbortTracker:
        def tracker(iteration: int, prev: float, new: float, max_iter: int) -> bool:
            return _limit_reached(iteration, max_iter)

        return tracker


@dataclass(frozen=True)
class ImprovementThreshold(AbortStrategy):
    """Останов, как только улучшение distsum не превышает ``threshold``."""

    threshold: float = 0.0

    def start(self) -> AbortTracker:
        def tracker(iteration: int, prev: float, new: float, max_iter: int) -> bool:
            return _limit_reached(iteration, max_iter) or (prev - new) <= self.threshold

        return tracker


@dataclass(frozen=True)
class NoImprovementPatience(AbortStrategy):
    """
    Останов после ``patience`` подряд итераций без улучшения больше ``threshold``.

    Терпимо к немонотонным последовательностям (mini-batch). При
    ``abort_on_negative`` рост distsum останавливает запуск сразу.
    """

    patience: int = 5
    threshold: float = 0.0
    abort_on_negative: bool = False

    def __post_init__(self) -> None:
        if self.patience < 1:
            raise KMeansConfigurationError("patience must be >= 1")

    def start(self) -> AbortTracker:
        streak = 0

        def tracker(iteration: int, prev: float, new: float, max_iter: int) -> bool:
            nonlocal streak
            improvement = prev - new
            if self.abort_on_negative and improvement < 0:
                return True
            streak = streak + 1 if improvement <= self.threshold else 0
            return _limit_reached(iteration, max_iter) or streak >= self.patience

        return tracker


@dataclass(frozen=True)
class MovingAverageImprovement(AbortStrategy):
    """Останов, когда среднее улучшение за последние ``window`` итераций <= ``threshold``."""

    window: int = 10
    threshold: float = 0.0

    def __post_init__(self) -> None:
        if self.window < 1:
            raise KMeansConfigurationError("window must be >= 1")

    def start(self) -> AbortTracker:
        improvements: deque = deque(maxlen=self.window)

        def tracker(iteration: int, prev: float, new: float, max_iter: int) -> bool:
            if _limit_reached(iteration, max_iter):
                return True
            # Первая итерация сравнивается с +inf, в окно не попадает
            if prev == float("inf"):
                return False
            improvements.append(prev - new)
            if len(improvements) < self.window:
                return False
            return sum(improvements) / len(improvements) <= self.threshold

        return tracker
