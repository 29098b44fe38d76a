"""Utility helpers shared across ossgames modules."""

from .helpers import (
    chunked,
    ensure_directory,
    fold_diacritics,
    normalize_whitespace,
    serialize_json,
    slugify,
)
from .logging import configure_logging, get_logger, log_timing, run_context, run_log_path, source_context

__all__ = [
    "configure_logging",
    "get_logger",
    "log_timing",
    "run_context",
    "run_log_path",
    "source_context",
    "normalize_whitespace",
    "fold_diacritics",
    "slugify",
    "ensure_directory",
    "serialize_json",
    "chunked",
]
