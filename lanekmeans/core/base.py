from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from lanekmeans.config import KMeansConfig, MultiprocessingConfig, Variant
from lanekmeans.core import lloyd, minibatch
from lanekmeans.core.distances import DistanceFunction, get_distance
from lanekmeans.core.errors import KMeansConfigurationError
from lanekmeans.core.inits import InitCallable, KMeansPlusPlus, RandomPartition, RandomSample
from lanekmeans.core.memory import SampleStorage
from lanekmeans.core.parallel import BlockExecutor, IndexSet
from lanekmeans.core.state import KMeansResult, KMeansState

log = logging.getLogger(__name__)

INITS: Dict[str, type] = {
    "random_partition": RandomPartition,
    "random_sample": RandomSample,
    "kmeans++": KMeansPlusPlus,
}


def get_init(init: Union[str, InitCallable]) -> InitCallable:
    """Стратегия инициализации по имени или сам переданный callable."""
    if callable(init):
        return init
    try:
        return INITS[str(init).lower()]()
    except KeyError:
        raise KMeansConfigurationError(
            f"Unknown initialization {init!r}; available: {sorted(INITS)}"
        ) from None


class KMeans:
    """
    Точка входа: выборка, функция расстояния и параметры параллелизма.

    Конструктор один раз раскладывает выборку в shared-память блоками;
    методы-варианты (``kmeans_lloyd``, ``kmeans_minibatch``) не меняют объект,
    всё изменяемое живёт в ``KMeansState`` конкретного вызова. Поэтому один
    экземпляр можно использовать для нескольких запусков подряд или
    параллельно.
    """

    def __init__(
        self,
        samples: Any,
        n_samples: int,
        n_dims: int,
        distance: Union[str, DistanceFunction] = "euclidean",
        n_blocks: int = 1,
        lanes: int = 8,
        dtype: Any = None,
        mp: MultiprocessingConfig = MultiprocessingConfig(),
    ) -> None:
        self.samples = SampleStorage(
            samples, n_samples, n_dims, n_blocks=n_blocks, lanes=lanes, dtype=dtype
        )
        self.distance = get_distance(distance)
        self.distance.validate_samples(self.samples.matrix)
        self.lanes = lanes
        self.mp = mp

    @property
    def n_samples(self) -> int:
        return self.samples.n_samples

    @property
    def n_dims(self) -> int:
        return self.samples.n_dims

    @property
    def stride(self) -> int:
        return self.samples.stride

    # ---------- Варианты ----------

    def kmeans_lloyd(
        self,
        k: int,
        max_iter: int,
        init: Union[str, InitCallable] = "kmeans++",
        config: Optional[KMeansConfig] = None,
    ) -> KMeansResult:
        """Полнобатчевый алгоритм Ллойда."""
        return lloyd.calculate(self, k, max_iter, get_init(init), config or KMeansConfig())

    def kmeans_minibatch(
        self,
        batch_size: int,
        k: int,
        max_iter: int,
        init: Union[str, InitCallable] = "random_sample",
        config: Optional[KMeansConfig] = None,
    ) -> KMeansResult:
        """Mini-batch k-means со скользящим средним центроидов."""
        if not 1 <= batch_size <= self.n_samples:
            raise KMeansConfigurationError(
                f"batch_size must be in [1, {self.n_samples}], got {batch_size}"
            )
        return minibatch.calculate(
            self, batch_size, k, max_iter, get_init(init), config or KMeansConfig()
        )

    def run(
        self,
        variant: Union[str, Variant],
        k: int,
        max_iter: int,
        init: Union[str, InitCallable, None] = None,
        config: Optional[KMeansConfig] = None,
        batch_size: Optional[int] = None,
    ) -> KMeansResult:
        """Запуск варианта по его имени (``Variant``)."""
        try:
            variant = Variant(variant)
        except ValueError:
            raise KMeansConfigurationError(f"Unknown variant {variant!r}") from None

        if variant is Variant.LLOYD:
            return self.kmeans_lloyd(k, max_iter, init or "kmeans++", config)
        if batch_size is None:
            raise KMeansConfigurationError("batch_size is required for the mini-batch variant")
        return self.kmeans_minibatch(batch_size, k, max_iter, init or "random_sample", config)

    # ---------- Общие шаги вариантов ----------

    def new_state(self, k: int, max_iter: int) -> KMeansState:
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise KMeansConfigurationError(f"k must be an integer, got {k!r}")
        if not 0 < k <= self.n_samples:
            raise KMeansConfigurationError(
                f"k must be in [1, {self.n_samples}], got {k}"
            )
        if max_iter < 1:
            raise KMeansConfigurationError("max_iter must be >= 1")
        return KMeansState(int(k), self.n_samples, self.n_dims, self.stride, self.samples.dtype)

    def assign(
        self, executor: BlockExecutor, state: KMeansState, index_sets: Sequence[IndexSet]
    ):
        """Назначение набора строк ближайшим центроидам: (метки, расстояния)."""
        return executor.assign(index_sets, state.centroids.bfr, self.distance, self.lanes)

    def update_cluster_assignments(self, executor: BlockExecutor, state: KMeansState) -> float:
        """Назначение всей выборки; возвращает новый distsum."""
        labels, dists = self.assign(executor, state, self.samples.blocks)
        state.assignments[:] = labels
        state.sync_frequency()
        return float(dists.sum(dtype=np.float64))

    def update_centroids(self, executor: BlockExecutor, state: KMeansState) -> None:
        """
        Пересчёт центроидов заново по вектору назначений.

        Частоты обнуляются и считаются заново из частичных сумм блоков;
        центроид пустого кластера остаётся прежним.
        """
        blocks = self.samples.blocks
        sums, counts = executor.partial_sums(
            blocks, [state.assignments[b] for b in blocks], state.k
        )
        state.centroid_frequency[:] = counts

        non_empty = counts > 0
        state.centroids.bfr[non_empty] = sums[non_empty] / counts[non_empty, None]

        if log.isEnabledFor(logging.DEBUG) and not np.all(non_empty):
            log.debug("Empty clusters kept at previous centroid: %s", state.empty_clusters().tolist())
