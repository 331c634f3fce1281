"""
Таймеры фаз алгоритма на основе time.perf_counter().
"""
from __future__ import annotations

import time
from typing import Any


class Timer:
    """
    Контекстный менеджер для замера одного участка кода.

    Повторное использование перезаписывает ``elapsed``, а ``total``
    накапливает время всех замеров; так драйверы суммируют время фаз
    назначения и обновления за весь запуск.

    Пример:
        timer = Timer()
        with timer:
            step()
        timer.elapsed, timer.total
    """

    def __init__(self) -> None:
        self.start: float = 0.0
        self.end: float = 0.0
        self.elapsed: float = 0.0
        self.total: float = 0.0

    def __enter__(self) -> Timer:
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.end = time.perf_counter()
        self.elapsed = self.end - self.start
        self.total += self.elapsed
