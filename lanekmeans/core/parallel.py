from __future__ import annotations

from multiprocessing import Pool, RawArray, cpu_count
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np

from lanekmeans.config import MultiprocessingConfig
from lanekmeans.core.distances import DistanceFunction
from lanekmeans.core.errors import NonFiniteDistanceError
from lanekmeans.core.memory import SampleStorage

IndexSet = Any  # slice блока или массив индексов мини-батча

# Бюджет элементов временного массива строк на шаге назначения
_TILE_ELEMENTS = 1 << 18


# --- Глобальное состояние: shared выборка в воркерах ---
_SHARED_X_BUF: RawArray | None = None
_SHARED_X_DTYPE: str | None = None
_SHARED_X_SHAPE: Tuple[int, int] | None = None


def _init_shared_X(raw: RawArray, dtype: str, shape: Tuple[int, int]) -> None:
    """Инициализатор пула: регистрирует shared выборку."""
    global _SHARED_X_BUF, _SHARED_X_DTYPE, _SHARED_X_SHAPE
    _SHARED_X_BUF = raw
    _SHARED_X_DTYPE = dtype
    _SHARED_X_SHAPE = shape


def _get_shared_X() -> np.ndarray:
    """NumPy-представление shared выборки."""
    assert _SHARED_X_BUF is not None and _SHARED_X_SHAPE is not None
    arr = np.frombuffer(_SHARED_X_BUF, dtype=np.dtype(_SHARED_X_DTYPE))
    return arr.reshape(_SHARED_X_SHAPE)


def assign_rows(
    X: np.ndarray,
    idx: IndexSet,
    centroids: np.ndarray,
    distance: DistanceFunction,
    lanes: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Назначение для набора строк: (метки, расстояние до выбранного центроида).

    Строки обрабатываются плитками не больше ``_TILE_ELEMENTS`` элементов, а
    центроиды по одному с бегущим минимумом, поэтому временная память не
    зависит ни от размера блока, ни от K.
    """
    X_chunk = X[idx]
    tile = max(1, _TILE_ELEMENTS // X.shape[1])

    labels_parts: List[np.ndarray] = []
    dists_parts: List[np.ndarray] = []
    for start in range(0, X_chunk.shape[0], tile):
        rows = X_chunk[start : start + tile]
        labels = np.zeros(rows.shape[0], dtype=np.int64)
        best = None
        for c, centroid in enumerate(centroids):
            d = distance.compute(rows, centroid, lanes)
            if not np.all(np.isfinite(d)):
                raise NonFiniteDistanceError(
                    f"Non-finite distance during assignment ({type(distance).__name__})"
                )
            if best is None:
                best = d
                continue
            # Строгое сравнение: при равенстве остаётся меньший индекс
            closer = d < best
            labels[closer] = c
            best = np.where(closer, d, best)
        labels_parts.append(labels)
        dists_parts.append(best)

    if not labels_parts:
        return np.zeros(0, dtype=np.int64), np.zeros(0, dtype=X.dtype)
    return np.concatenate(labels_parts), np.concatenate(dists_parts)


def reduce_rows(
    X: np.ndarray, idx: IndexSet, labels_chunk: np.ndarray, k: int
) -> Tuple[np.ndarray, np.ndarray]:
    """Частичная редукция: (sums[K, stride], counts[K]) для набора строк."""
    X_chunk = X[idx]
    tile = max(1, _TILE_ELEMENTS // X.shape[1])

    sums = np.zeros((k, X.shape[1]), dtype=np.float64)
    counts = np.zeros(k, dtype=np.int64)

    for start in range(0, X_chunk.shape[0], tile):
        rows = X_chunk[start : start + tile]
        labels = labels_chunk[start : start + tile]
        for c in range(k):
            mask = labels == c
            if not np.any(mask):
                continue
            pts = rows[mask]
            sums[c] += pts.sum(axis=0, dtype=np.float64)
            counts[c] += pts.shape[0]

    return sums, counts


def _pool_task(args: Tuple[Callable[..., Any], tuple]) -> Any:
    fn, fn_args = args
    return fn(_get_shared_X(), *fn_args)


class BlockExecutor:
    """
    Fork-join исполнитель фаз над блоками выборки (пул один раз на запуск).

    При одном процессе задачи выполняются в текущем процессе без пула.
    Результаты возвращаются и сливаются в порядке блоков, поэтому итог не
    зависит от числа процессов.
    """

    def __init__(self, storage: SampleStorage, mp: MultiprocessingConfig) -> None:
        self.storage = storage
        requested = storage.n_blocks if mp.n_processes is None else int(mp.n_processes)
        self.n_processes = max(1, min(requested, storage.n_blocks, cpu_count()))
        self._pool: Optional[Pool] = None

    def __enter__(self) -> BlockExecutor:
        if self.n_processes > 1:
            # Пул инициализирует ссылку на shared выборку в каждом процессе
            self._pool = Pool(
                processes=self.n_processes,
                initializer=_init_shared_X,
                initargs=(self.storage.raw, self.storage.dtype.str, self.storage.shape),
            )
        return self

    def __exit__(self, *exc: Any) -> None:
        """Закрыть пул после запуска."""
        if self._pool is not None:
            self._pool.close()
            self._pool.join()
        self._pool = None

    def _map(self, fn: Callable[..., Any], args_list: List[tuple]) -> List[Any]:
        if self._pool is None:
            X = self.storage.matrix
            return [fn(X, *args) for args in args_list]
        return self._pool.map(_pool_task, [(fn, args) for args in args_list])

    # ---------- Assignment (parallel over blocks) ----------

    def assign(
        self,
        index_sets: Sequence[IndexSet],
        centroids: np.ndarray,
        distance: DistanceFunction,
        lanes: int,
    ) -> Tuple[np.ndarray, np.ndarray]:
        results = self._map(
            assign_rows, [(idx, centroids, distance, lanes) for idx in index_sets]
        )
        labels = np.concatenate([lbl for lbl, _ in results])
        dists = np.concatenate([d for _, d in results])
        return labels, dists

    # ---------- Update (parallel reduction) ----------

    def partial_sums(
        self, index_sets: Sequence[IndexSet], labels_sets: Sequence[np.ndarray], k: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        partials = self._map(
            reduce_rows, [(idx, lbl, k) for idx, lbl in zip(index_sets, labels_sets)]
        )

        sums_total = np.zeros((k, self.storage.stride), dtype=np.float64)
        counts_total = np.zeros(k, dtype=np.int64)

        # Последовательное слияние в порядке блоков
        for sums, counts in partials:
            sums_total += sums
            counts_total += counts

        return sums_total, counts_total
