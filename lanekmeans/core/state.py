"""
Состояние запуска и его неизменяемый результат.

``KMeansState`` живёт только внутри одного вызова и никогда не разделяется
между запусками; ``KMeansResult`` является снимком, который возвращается вызывающему.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from lanekmeans.core.memory import CentroidMatrix
from lanekmeans.utils.timers import Timer


class KMeansState:
    """Изменяемое состояние: центроиды, назначения, частоты, distsum."""

    def __init__(self, k: int, n_samples: int, n_dims: int, stride: int, dtype) -> None:
        self.k = k
        self.n_dims = n_dims
        self.centroids = CentroidMatrix(k, n_dims, stride, dtype)
        self.assignments = np.zeros(n_samples, dtype=np.int64)
        self.centroid_frequency = np.zeros(k, dtype=np.int64)
        self.distsum = float("inf")
        self.n_iter = 0

        self.assign_timer = Timer()
        self.update_timer = Timer()

    def sync_frequency(self) -> None:
        """Пересчитывает частоты по текущему вектору назначений."""
        self.centroid_frequency[:] = np.bincount(self.assignments, minlength=self.k)

    def empty_clusters(self) -> np.ndarray:
        """Индексы кластеров без единого назначенного образца."""
        return np.flatnonzero(self.centroid_frequency == 0)

    def to_result(self) -> KMeansResult:
        return KMeansResult(
            centroids=_frozen(self.centroids.copy()),
            assignments=_frozen(self.assignments.copy()),
            centroid_frequency=_frozen(self.centroid_frequency.copy()),
            distsum=float(self.distsum),
            k=self.k,
            n_iter=self.n_iter,
            n_dims=self.n_dims,
            t_assign_total=self.assign_timer.total,
            t_update_total=self.update_timer.total,
        )


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class KMeansResult:
    """
    Итог запуска.

    ``centroids`` имеют форму (K, stride) вместе с нулевыми дорожками-
    заполнителями; ``centroid_matrix`` отдаёт те же центроиды без заполнителей.
    """

    centroids: np.ndarray
    assignments: np.ndarray
    centroid_frequency: np.ndarray
    distsum: float
    k: int
    n_iter: int
    n_dims: int
    t_assign_total: float = 0.0
    t_update_total: float = 0.0

    @property
    def stride(self) -> int:
        return self.centroids.shape[1]

    @property
    def centroid_matrix(self) -> np.ndarray:
        return self.centroids[:, : self.n_dims]

    @property
    def t_iter_total(self) -> float:
        return self.t_assign_total + self.t_update_total
