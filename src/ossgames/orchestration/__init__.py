"""Orchestration public API."""

from __future__ import annotations

from .main import FatalPipelineError, IngestionOrchestrator, RunOptions, RunResult, new_run_id, run_ingestion

__all__ = [
    "run_ingestion",
    "IngestionOrchestrator",
    "RunOptions",
    "RunResult",
    "FatalPipelineError",
    "new_run_id",
]
