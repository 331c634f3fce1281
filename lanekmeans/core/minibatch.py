"""
Mini-batch вариант.

Каждая итерация берёт из общего генератора ``batch_size`` различных
образцов (без возвращения), назначает только их и сдвигает центроиды
скользящим средним ``c += (x - c) / n``. Счётчики ``n`` не сбрасываются
между итерациями, и центроид равен среднему всех образцов, попавших в кластер за
весь запуск. После остановки выполняется полный шаг назначения, который
даёт итоговые назначения, частоты и distsum по всей выборке.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from lanekmeans.config import KMeansConfig, Variant, make_rng
from lanekmeans.core.abort import NoImprovementPatience
from lanekmeans.core.inits import InitCallable
from lanekmeans.core.parallel import BlockExecutor
from lanekmeans.core.state import KMeansResult, KMeansState
from lanekmeans.utils.logging import format_run_prefix, log_iteration

if TYPE_CHECKING:
    from lanekmeans.core.base import KMeans


def _learn_batch(
    executor: BlockExecutor, state: KMeansState, index_sets, labels: np.ndarray
) -> None:
    """
    Скользящее среднее по батчу в замкнутой форме.

    Последовательные шаги ``c += (x - c) / n`` для m образцов одного кластера
    дают ``c' = c + (S - m * c) / (n0 + m)``, где S это сумма образцов.
    """
    splits = np.cumsum([len(idx) for idx in index_sets])[:-1]
    sums, counts = executor.partial_sums(index_sets, np.split(labels, splits), state.k)

    hit = counts > 0
    state.centroid_frequency[hit] += counts[hit]

    c = state.centroids.bfr[hit].astype(np.float64)
    freq = state.centroid_frequency[hit, None]
    state.centroids.bfr[hit] = c + (sums[hit] - counts[hit, None] * c) / freq


def calculate(
    kmeans: "KMeans",
    batch_size: int,
    k: int,
    max_iter: int,
    init: InitCallable,
    config: KMeansConfig,
) -> KMeansResult:
    state = kmeans.new_state(k, max_iter)
    rng = make_rng(config.random_state)
    should_abort = (config.abort_strategy or NoImprovementPatience()).start()
    prefix = format_run_prefix(kmeans.n_samples, kmeans.n_dims, state.k, Variant.MINIBATCH)
    n_splits = kmeans.samples.n_blocks

    init(kmeans, state, rng)
    if config.init_done:
        config.init_done(state)

    # Счётчики скользящего среднего живут весь запуск
    state.centroid_frequency[:] = 0

    with BlockExecutor(kmeans.samples, kmeans.mp) as executor:
        for i in range(max_iter):
            batch = rng.choice(kmeans.n_samples, size=batch_size, replace=False)
            index_sets = [idx for idx in np.array_split(batch, n_splits) if idx.size > 0]

            with state.assign_timer:
                labels, dists = kmeans.assign(executor, state, index_sets)
            with state.update_timer:
                _learn_batch(executor, state, index_sets, labels)
            state.n_iter = i + 1

            new_distsum = float(dists.sum(dtype=np.float64))
            if config.iteration_done:
                config.iteration_done(state, i, new_distsum)

            prev_distsum, state.distsum = state.distsum, new_distsum
            stop = should_abort(i, prev_distsum, new_distsum, max_iter)

            log_iteration(config, prefix, state, i, max_iter, prev_distsum, stop)
            if stop:
                break

        with state.assign_timer:
            state.distsum = kmeans.update_cluster_assignments(executor, state)

    return state.to_result()
