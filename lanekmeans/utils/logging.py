from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lanekmeans.core.state import KMeansState


LIBRARY_LOGGER = "lanekmeans"
_LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"


def setup_logger(level: int = logging.INFO, stream: Any = None) -> logging.Logger:
    """
    Логгер прогресса запусков ``lanekmeans`` с одним потоковым обработчиком.

    Повторный вызов меняет только уровень. Сообщения не уходят в root-логгер,
    чтобы не дублироваться у приложений с собственной настройкой logging.

    :param level: минимальный уровень логирования
    :param stream: поток вывода (по умолчанию sys.stderr)
    """
    logger = logging.getLogger(LIBRARY_LOGGER)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)
    logger.propagate = False

    return logger


def resolve_logger(config: Any) -> Any:
    """Логгер запуска: явно переданный, библиотечный при ``verbose`` или None."""
    if config.logger:
        return config.logger
    if config.verbose:
        return setup_logger()
    return None


def format_run_prefix(n: int, d: int, k: int, variant: Any) -> str:
    """Текстовый префикс для логов запуска: ``[N=.. D=.. K=.. variant=..]``."""
    return f"[N={n} D={d} K={k} variant={getattr(variant, 'value', variant)}]"


def log_iteration(
    config: Any,
    prefix: str,
    state: "KMeansState",
    i: int,
    max_iter: int,
    prev_distsum: float,
    stopped: bool,
) -> None:
    """Пишет прогресс итерации: первая, каждая ``log_every``-я и последняя."""
    logger = resolve_logger(config)
    if not logger:
        return

    every = max(1, int(config.log_every))
    if i == 0 or (i + 1) % every == 0 or stopped:
        status = " (stopped)" if stopped else ""
        logger.info(
            f"{prefix}   Iteration {i + 1}/{max_iter}{status} "
            f"(T_assign={state.assign_timer.elapsed:.6f}s, "
            f"T_update={state.update_timer.elapsed:.6f}s, "
            f"distsum {prev_distsum:.6g} -> {state.distsum:.6g})"
        )

    if stopped:
        logger.info(f"{prefix}   Abort strategy stopped the run after {i + 1} iterations")
