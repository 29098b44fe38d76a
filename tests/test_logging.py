"""Tests for run-scoped loguru configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from loguru import logger

from ossgames.config.settings import Settings
from ossgames.utils.logging import configure_logging, get_logger, log_timing, run_context, source_context


@pytest.fixture
def settings(tmp_path: Path) -> Iterator[Settings]:
    yield Settings(create_dirs=False, paths={"logs_dir": tmp_path / "logs"})
    logger.remove()


def test_run_log_file_carries_run_and_source(settings: Settings, tmp_path: Path) -> None:
    log_path = configure_logging(settings, run_id="nightly", level="WARNING")
    log = get_logger(module="tests")

    log.debug("Before any source")
    with source_context("list-a"):
        log.info("Fetched document", lines=3)
    with run_context("rerun"), source_context("topic"):
        with log_timing("search", logger_=log):
            pass
    logger.remove()

    assert log_path == tmp_path / "logs" / "run-nightly.log"
    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert "run=nightly source=- " in lines[0]
    assert "Before any source" in lines[0]
    assert "run=nightly source=list-a " in lines[1]
    assert "Fetched document" in lines[1]
    assert "'lines': 3" in lines[1]
    assert "run=rerun source=topic " in lines[2]
    assert "Stage finished" in lines[2]


def test_no_run_log_without_run_id(settings: Settings, tmp_path: Path) -> None:
    assert configure_logging(settings, level="WARNING") is None
    assert not (tmp_path / "logs").exists()
