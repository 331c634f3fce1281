"""
Стратегии инициализации центроидов.

Каждая стратегия получает модель (выборку, функцию расстояния), состояние
запуска и общий генератор случайных чисел и заполняет ``state.centroids`` и
``state.assignments``. После инициализации частоты всегда согласованы с
назначениями. Все обращения к генератору идут последовательно в текущем
процессе, поэтому при одном seed последовательность выборок не зависит от
числа процессов.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Union

import numpy as np

from lanekmeans.core.errors import NonFiniteDistanceError
from lanekmeans.core.state import KMeansState

if TYPE_CHECKING:
    from lanekmeans.core.base import KMeans


class InitStrategy(ABC):
    """Базовый класс стратегий инициализации."""

    @abstractmethod
    def initialize(self, kmeans: "KMeans", state: KMeansState, rng: np.random.Generator) -> None:
        raise NotImplementedError

    def __call__(self, kmeans: "KMeans", state: KMeansState, rng: np.random.Generator) -> None:
        self.initialize(kmeans, state, rng)


InitCallable = Union[InitStrategy, Callable[["KMeans", KMeansState, np.random.Generator], None]]


class RandomPartition(InitStrategy):
    """
    Случайное разбиение: каждому образцу равновероятно выдаётся кластер,
    центроид равен среднему назначенных образцов.

    Кластер, которому не досталось ни одного образца, остаётся нулевым.
    """

    def initialize(self, kmeans: "KMeans", state: KMeansState, rng: np.random.Generator) -> None:
        X = kmeans.samples.matrix
        state.assignments[:] = rng.integers(0, state.k, size=X.shape[0])
        state.sync_frequency()

        # Второй проход: каждый образец вносит sample / frequency в свой центроид
        scale = 1.0 / state.centroid_frequency[state.assignments]
        np.add.at(state.centroids.bfr, state.assignments, X * scale[:, None].astype(X.dtype))


class RandomSample(InitStrategy):
    """
    Случайные образцы: из каждого блока без возвращения берётся ceil(k/P)
    строк, которые копируются в центроиды по порядку блоков до k штук.
    """

    def initialize(self, kmeans: "KMeans", state: KMeansState, rng: np.random.Generator) -> None:
        storage = kmeans.samples
        per_block = -(-state.k // storage.n_blocks)

        slot = 0
        for b in range(storage.n_blocks):
            rows = storage.block(b)
            take = min(per_block, rows.shape[0], state.k - slot)
            if take <= 0:
                break
            for r in rng.choice(rows.shape[0], size=take, replace=False):
                state.centroids.set_nth(slot, rows[r])
                slot += 1

        state.assignments[:] = 0
        state.sync_frequency()


class KMeansPlusPlus(InitStrategy):
    """
    K-means++: первый центр выбирается равновероятно, каждый следующий
    с вероятностью, пропорциональной расстоянию до ближайшего уже выбранного.
    """

    def initialize(self, kmeans: "KMeans", state: KMeansState, rng: np.random.Generator) -> None:
        X = kmeans.samples.matrix
        n_samples = X.shape[0]

        def distances_to(row: int) -> np.ndarray:
            d = kmeans.distance.compute(X, X[row], kmeans.lanes).astype(np.float64)
            if not np.all(np.isfinite(d)):
                raise NonFiniteDistanceError("Non-finite distance during k-means++ seeding")
            return d

        first = int(rng.integers(n_samples))
        state.centroids.set_nth(0, X[first])
        nearest = distances_to(first)

        for c in range(1, state.k):
            total = nearest.sum()
            if total > 0:
                idx = int(rng.choice(n_samples, p=nearest / total))
            else:
                # Все оставшиеся образцы совпадают с центрами
                idx = int(rng.integers(n_samples))
            state.centroids.set_nth(c, X[idx])
            nearest = np.minimum(nearest, distances_to(idx))

        state.assignments[:] = 0
        state.sync_frequency()
