from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

import numpy as np

if TYPE_CHECKING:
    from lanekmeans.core.abort import AbortStrategy


class Variant(str, Enum):
    LLOYD = "lloyd"
    MINIBATCH = "minibatch"


@dataclass(frozen=True)
class MultiprocessingConfig:
    """Параметры пула процессов. ``None``: по одному процессу на блок (не больше числа CPU)."""

    n_processes: Optional[int] = None


@dataclass
class KMeansConfig:
    """
    Параметры одного вызова, не относящиеся к самому алгоритму.

    - random_state: seed, готовый ``np.random.Generator`` или None;
    - abort_strategy: при None берётся стратегия по умолчанию для варианта;
    - init_done(state): вызывается после инициализации;
    - iteration_done(state, iteration, new_distsum): после каждой итерации,
      до замены ``state.distsum``;
    - logger / log_every: куда и как часто писать прогресс итераций;
    - verbose: без явного logger писать прогресс в логгер ``lanekmeans``.

    Колбэки только читают состояние, алгоритм от них не зависит.
    """

    random_state: Any = None
    abort_strategy: Optional[AbortStrategy] = None
    init_done: Optional[Callable[..., None]] = None
    iteration_done: Optional[Callable[..., None]] = None
    logger: Any = None
    log_every: int = 10
    verbose: bool = False


def make_rng(random_state: Any) -> np.random.Generator:
    """Единый источник случайности запуска."""
    if isinstance(random_state, np.random.Generator):
        return random_state
    return np.random.default_rng(random_state)
