"""
Функции расстояния между строкой выборки и центроидом.

Оба аргумента являются массивами ширины stride (последняя ось); ведущие оси
транслируются (broadcasting), поэтому один и тот же ``compute`` считает и
расстояние для пары строк, и сетку блок×K на шаге назначения.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Type

import numpy as np

from lanekmeans.core.errors import KMeansConfigurationError
from lanekmeans.core.memory import lane_sum


class DistanceFunction(ABC):
    """Чистая детерминированная функция (sample, centroid) → скаляр >= 0."""

    name: str = ""

    @abstractmethod
    def compute(self, a: np.ndarray, b: np.ndarray, lanes: int = 1) -> np.ndarray:
        raise NotImplementedError

    def validate_samples(self, samples: np.ndarray) -> None:
        """Проверка выборки при создании модели; по умолчанию допустимо всё."""

    def __call__(self, a: np.ndarray, b: np.ndarray, lanes: int = 1) -> np.ndarray:
        return self.compute(a, b, lanes)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class EuclideanDistance(DistanceFunction):
    """Квадрат евклидова расстояния (корень не берётся: важен только порядок)."""

    name = "euclidean"

    def compute(self, a: np.ndarray, b: np.ndarray, lanes: int = 1) -> np.ndarray:
        diff = a - b
        return lane_sum(diff * diff, lanes)


class HistogramDistance(DistanceFunction):
    """
    Хи-квадрат расстояние между гистограммами: sum((a - b)^2 / (a + b)).

    Дорожки, где a + b == 0 (пустые корзины и заполнители), дают 0.
    Отрицательные значения не допускаются: иначе слагаемые меняют знак.
    """

    name = "histogram"

    def validate_samples(self, samples: np.ndarray) -> None:
        if np.any(samples < 0):
            raise KMeansConfigurationError(
                "Histogram distance requires non-negative samples"
            )

    def compute(self, a: np.ndarray, b: np.ndarray, lanes: int = 1) -> np.ndarray:
        diff = a - b
        total = a + b
        nonzero = total != 0
        # Деление только там, где знаменатель ненулевой
        terms = np.divide(
            diff * diff,
            total,
            out=np.zeros(np.broadcast(diff, total).shape, dtype=np.result_type(a, b)),
            where=nonzero,
        )
        return lane_sum(terms, lanes)


DISTANCES: Dict[str, Type[DistanceFunction]] = {
    EuclideanDistance.name: EuclideanDistance,
    HistogramDistance.name: HistogramDistance,
}


def get_distance(distance: str | DistanceFunction) -> DistanceFunction:
    """Возвращает функцию расстояния по имени или проверяет переданный экземпляр."""
    if isinstance(distance, DistanceFunction):
        return distance
    try:
        return DISTANCES[str(distance).lower()]()
    except KeyError:
        raise KMeansConfigurationError(
            f"Unknown distance {distance!r}; available: {sorted(DISTANCES)}"
        ) from None
