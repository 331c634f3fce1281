"""
Полнобатчевый вариант (алгоритм Ллойда).

Каждая итерация: назначение всей выборки (параллельно по блокам), пересчёт
центроидов из частичных сумм блоков, проверка стратегии остановки. distsum
результата относится к последнему шагу назначения, центроиды к последнему
обновлению.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lanekmeans.config import KMeansConfig, Variant, make_rng
from lanekmeans.core.abort import ImprovementThreshold
from lanekmeans.core.inits import InitCallable
from lanekmeans.core.parallel import BlockExecutor
from lanekmeans.core.state import KMeansResult
from lanekmeans.utils.logging import format_run_prefix, log_iteration

if TYPE_CHECKING:
    from lanekmeans.core.base import KMeans


def calculate(
    kmeans: "KMeans", k: int, max_iter: int, init: InitCallable, config: KMeansConfig
) -> KMeansResult:
    state = kmeans.new_state(k, max_iter)
    rng = make_rng(config.random_state)
    should_abort = (config.abort_strategy or ImprovementThreshold()).start()
    prefix = format_run_prefix(kmeans.n_samples, kmeans.n_dims, state.k, Variant.LLOYD)

    init(kmeans, state, rng)
    if config.init_done:
        config.init_done(state)

    with BlockExecutor(kmeans.samples, kmeans.mp) as executor:
        for i in range(max_iter):
            with state.assign_timer:
                new_distsum = kmeans.update_cluster_assignments(executor, state)
            with state.update_timer:
                kmeans.update_centroids(executor, state)
            state.n_iter = i + 1

            if config.iteration_done:
                config.iteration_done(state, i, new_distsum)

            prev_distsum, state.distsum = state.distsum, new_distsum
            stop = should_abort(i, prev_distsum, new_distsum, max_iter)

            log_iteration(config, prefix, state, i, max_iter, prev_distsum, stop)
            if stop:
                break

    return state.to_result()
