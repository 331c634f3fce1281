"""
lanekmeans: k-means по плотным матрицам с раскладкой по «дорожкам».

Выборка задаётся плоским буфером длины N·D и один раз раскладывается в
shared-память блоками строк ширины stride. Варианты: полнобатчевый
(Ллойд) и mini-batch; инициализации: random partition, random sample,
k-means++.

Пример:
    >>> import numpy as np
    >>> from lanekmeans import KMeans, KMeansConfig
    >>> X = np.random.default_rng(0).random(2000 * 16)
    >>> km = KMeans(X, 2000, 16, n_blocks=4, lanes=8)
    >>> res = km.kmeans_lloyd(4, 100, "kmeans++", KMeansConfig(random_state=1337))
    >>> res.centroid_matrix.shape
    (4, 16)
"""

from .config import KMeansConfig, MultiprocessingConfig, Variant, make_rng
from .core import (
    AbortStrategy,
    DistanceFunction,
    EuclideanDistance,
    HistogramDistance,
    ImprovementThreshold,
    InitStrategy,
    KMeans,
    KMeansConfigurationError,
    KMeansPlusPlus,
    KMeansResult,
    KMeansState,
    MaxIterations,
    MovingAverageImprovement,
    NoImprovementPatience,
    NonFiniteDistanceError,
    RandomPartition,
    RandomSample,
)
from .utils.logging import resolve_logger, setup_logger

__version__ = "0.1.0"

__all__ = [
    "KMeans",
    "KMeansConfig",
    "MultiprocessingConfig",
    "Variant",
    "make_rng",
    "AbortStrategy",
    "ImprovementThreshold",
    "MaxIterations",
    "MovingAverageImprovement",
    "NoImprovementPatience",
    "DistanceFunction",
    "EuclideanDistance",
    "HistogramDistance",
    "InitStrategy",
    "KMeansPlusPlus",
    "RandomPartition",
    "RandomSample",
    "KMeansResult",
    "KMeansState",
    "KMeansConfigurationError",
    "NonFiniteDistanceError",
    "resolve_logger",
    "setup_logger",
]
