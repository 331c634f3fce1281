"""
Общие фикстуры для всех тестов.
"""

import numpy as np
import pytest


@pytest.fixture
def blobs_3():
    """Три явно разделённых кластера в 5D (плоский буфер + N, D)."""
    rng = np.random.default_rng(42)
    centers = np.array([
        [0.0] * 5,
        [10.0] * 5,
        [-10.0] * 5,
    ])
    X = np.vstack([rng.standard_normal((40, 5)) + c for c in centers])
    return X.reshape(-1), X.shape[0], X.shape[1]


@pytest.fixture
def uniform_samples():
    """Равномерный шум 100×3 (для тестов инициализации)."""
    rng = np.random.default_rng(7)
    X = rng.random((100, 3))
    return X.reshape(-1), 100, 3


@pytest.fixture
def simple_2d_dataset():
    """Очень простой 2D датасет из двух групп по три точки."""
    X = np.array([
        [0.0, 0.0],
        [1.0, 1.0],
        [2.0, 2.0],
        [10.0, 10.0],
        [11.0, 11.0],
        [12.0, 12.0],
    ])
    return X.reshape(-1), 6, 2


@pytest.fixture
def histograms():
    """Неотрицательные «гистограммы» с нулевыми корзинами."""
    rng = np.random.default_rng(3)
    H = rng.poisson(2.0, size=(60, 7)).astype(np.float64)
    H[::5, 0] = 0.0
    return H.reshape(-1), 60, 7


@pytest.fixture
def tight_blobs():
    """Три очень плотных кластера по 40 точек: разбиение однозначно."""
    rng = np.random.default_rng(0)
    centers = np.array([[0.0] * 5, [10.0] * 5, [-10.0] * 5])
    X = np.vstack([0.01 * rng.standard_normal((40, 5)) + c for c in centers])
    return X.reshape(-1), X.shape[0], X.shape[1]
