"""
Раскладка выборки и центроидов в памяти.

Строки хранятся с шириной ``stride``: размерность D, округлённая вверх до
кратного числа «дорожек» (lanes). Дорожки-заполнители всегда нулевые и не
влияют на расстояния. Выборка один раз копируется в общий ``RawArray``,
чтобы воркеры пула читали её без копирования.
"""

from __future__ import annotations

from multiprocessing import RawArray
from typing import Iterator, List

import numpy as np

from lanekmeans.core.errors import KMeansConfigurationError

# Поддерживаемые примитивы и соответствующие коды типов RawArray
SUPPORTED_PRIMITIVES = {
    np.dtype(np.float32): "f",
    np.dtype(np.float64): "d",
}


def as_primitive(dtype) -> np.dtype:
    """Нормализует dtype и проверяет, что он поддерживается (float32/float64)."""
    dt = np.dtype(dtype)
    if dt not in SUPPORTED_PRIMITIVES:
        raise KMeansConfigurationError(
            f"Unsupported primitive {dt}; expected float32 or float64"
        )
    return dt


def padded_stride(n_dims: int, lanes: int) -> int:
    """D, округлённое вверх до кратного ``lanes``."""
    if lanes < 1:
        raise KMeansConfigurationError("lanes must be >= 1")
    return -(-n_dims // lanes) * lanes


def lane_sum(values: np.ndarray, lanes: int) -> np.ndarray:
    """
    Редукция по последней оси в два шага, как у SIMD-векторов.

    Сначала значения складываются «вертикально» в вектор ширины ``lanes``,
    затем выполняется горизонтальная сумма этого вектора. При ``lanes == 1``
    это обычная скалярная сумма.
    """
    stride = values.shape[-1]
    lanes_vec = values.reshape(values.shape[:-1] + (stride // lanes, lanes)).sum(axis=-2)
    return lanes_vec.sum(axis=-1)


def _shared_view(raw: RawArray, dtype: np.dtype, shape) -> np.ndarray:
    return np.frombuffer(raw, dtype=dtype).reshape(shape)


class SampleStorage:
    """
    Неизменяемая матрица выборки N×stride, разбитая на P блоков строк.

    Блоки являются непрерывными диапазонами строк (границы как у ``np.array_split``);
    каждый воркер владеет одним блоком на шаге назначения.
    """

    def __init__(
        self,
        samples,
        n_samples: int,
        n_dims: int,
        n_blocks: int = 1,
        lanes: int = 8,
        dtype=None,
    ) -> None:
        if n_samples <= 0:
            raise KMeansConfigurationError("sample count must be positive")
        if n_dims <= 0:
            raise KMeansConfigurationError("sample dimension must be positive")
        if n_blocks < 1:
            raise KMeansConfigurationError("n_blocks must be >= 1")

        flat = np.asarray(samples)
        if dtype is None:
            dtype = flat.dtype if flat.dtype in SUPPORTED_PRIMITIVES else np.float64
        self.dtype = as_primitive(dtype)

        flat = flat.reshape(-1)
        if flat.size != n_samples * n_dims:
            raise KMeansConfigurationError(
                f"Sample buffer has {flat.size} values, expected "
                f"{n_samples} * {n_dims} = {n_samples * n_dims}"
            )

        self.n_samples = n_samples
        self.n_dims = n_dims
        self.lanes = lanes
        self.stride = padded_stride(n_dims, lanes)

        # Одна копия в shared RawArray, заполнители остаются нулевыми
        self.raw = RawArray(SUPPORTED_PRIMITIVES[self.dtype], n_samples * self.stride)
        view = _shared_view(self.raw, self.dtype, (n_samples, self.stride))
        view[:, :n_dims] = flat.reshape(n_samples, n_dims)

        self._matrix = view
        self._matrix.flags.writeable = False

        bounds = np.array_split(np.arange(n_samples), min(n_blocks, n_samples))
        self.blocks: List[slice] = [
            slice(int(idx[0]), int(idx[-1]) + 1) for idx in bounds if idx.size > 0
        ]

    @property
    def shape(self):
        return self._matrix.shape

    @property
    def matrix(self) -> np.ndarray:
        """Вся выборка (только чтение)."""
        return self._matrix

    @property
    def n_blocks(self) -> int:
        return len(self.blocks)

    def block(self, i: int) -> np.ndarray:
        return self._matrix[self.blocks[i]]

    def chunks_exact_stride(self, i: int) -> Iterator[np.ndarray]:
        """Итерация по строкам блока ``i`` (каждая длиной stride)."""
        yield from self.block(i)


class CentroidMatrix:
    """Буфер центроидов K×stride; дорожки-заполнители всегда нулевые."""

    def __init__(self, k: int, n_dims: int, stride: int, dtype) -> None:
        self.k = k
        self.n_dims = n_dims
        self.stride = stride
        self.bfr = np.zeros((k, stride), dtype=dtype)

    def set_nth(self, i: int, values: np.ndarray) -> None:
        """Записывает i-й центроид на месте (без перевыделения буфера)."""
        self.bfr[i, : self.n_dims] = np.asarray(values)[: self.n_dims]
        self.bfr[i, self.n_dims :] = 0

    def rows(self) -> Iterator[np.ndarray]:
        yield from self.bfr

    def copy(self) -> np.ndarray:
        return self.bfr.copy()
