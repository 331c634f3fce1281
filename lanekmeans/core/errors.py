"""
Исключения библиотеки lanekmeans.

Ошибки конфигурации отклоняются сразу при создании/вызове, численные ошибки
(нечисловые расстояния) пробрасываются вызывающему коду без подавления.
"""

from __future__ import annotations


class KMeansConfigurationError(ValueError):
    """Некорректные параметры запуска (k, N, D, размер буфера и т.п.)."""


class NonFiniteDistanceError(FloatingPointError):
    """На шаге назначения получено NaN или бесконечное расстояние."""
