"""Logging for ingestion runs, built on loguru.

Every record carries the ``run_id`` and ``source`` extras. The console sink
shows them inline; each run also gets its own file under ``logs_dir`` so a
periodic job leaves one log per run next to its report.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

from ..config.settings import Settings, get_settings

_NO_CONTEXT = "-"

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <7}</level> | "
    "<magenta>{extra[source]}</magenta> | "
    "{message}"
)
_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS ZZ} | {level: <7} | "
    "run={extra[run_id]} source={extra[source]} | {name}:{line} | {message} | {extra}"
)

logger.configure(extra={"run_id": _NO_CONTEXT, "source": _NO_CONTEXT})


def run_log_path(settings: Settings, run_id: str) -> Path:
    """Location of the log file written for ``run_id``."""

    return settings.logs_dir / f"run-{run_id}.log"


def configure_logging(
    settings: Settings | None = None,
    *,
    run_id: str | None = None,
    level: str = "INFO",
) -> Path | None:
    """Replace all sinks with the console sink and, given a run id, a run log file.

    The run id becomes the default ``run_id`` extra so records emitted before
    :func:`run_context` is entered are still attributed. The file sink always
    records at DEBUG. Returns the run log path, or ``None`` without a run id.
    """

    cfg = settings or get_settings()
    logger.remove()
    logger.configure(extra={"run_id": run_id or _NO_CONTEXT, "source": _NO_CONTEXT})
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, backtrace=False, diagnose=False)
    if run_id is None:
        return None

    log_path = run_log_path(cfg, run_id)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(log_path, level="DEBUG", format=_FILE_FORMAT, encoding="utf-8", backtrace=False, diagnose=False)
    return log_path


def get_logger(**context: Any):
    """Return a logger bound to ``context`` (``module=``, ``component=`` ...)."""

    return logger.bind(**context)


@contextmanager
def run_context(run_id: str) -> Iterator[None]:
    """Attribute every record emitted inside the block to ``run_id``."""

    with logger.contextualize(run_id=run_id):
        yield


@contextmanager
def source_context(source: str) -> Iterator[None]:
    """Attribute every record emitted inside the block to ``source``."""

    with logger.contextualize(source=source):
        yield


@contextmanager
def log_timing(stage: str, *, logger_=logger) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        logger_.info("Stage finished", stage=stage, seconds=round(time.perf_counter() - start, 3))


__all__ = [
    "configure_logging",
    "get_logger",
    "log_timing",
    "run_context",
    "run_log_path",
    "source_context",
]
