from .abort import (
    AbortStrategy,
    ImprovementThreshold,
    MaxIterations,
    MovingAverageImprovement,
    NoImprovementPatience,
)
from .base import KMeans
from .distances import DistanceFunction, EuclideanDistance, HistogramDistance
from .errors import KMeansConfigurationError, NonFiniteDistanceError
from .inits import InitStrategy, KMeansPlusPlus, RandomPartition, RandomSample
from .state import KMeansResult, KMeansState

__all__ = [
    "AbortStrategy",
    "ImprovementThreshold",
    "MaxIterations",
    "MovingAverageImprovement",
    "NoImprovementPatience",
    "KMeans",
    "DistanceFunction",
    "EuclideanDistance",
    "HistogramDistance",
    "KMeansConfigurationError",
    "NonFiniteDistanceError",
    "InitStrategy",
    "KMeansPlusPlus",
    "RandomPartition",
    "RandomSample",
    "KMeansResult",
    "KMeansState",
]
