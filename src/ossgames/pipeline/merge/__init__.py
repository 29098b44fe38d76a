"""Canonical dataset merge, persistence and reporting."""

from .assembler import MergeAssembler, MergeResult
from .io import DatasetError, LoadedDataset, load_dataset, load_resource_keys, read_dataset, write_dataset
from .report import (
    language_distribution,
    render_curated,
    render_markdown,
    report_document,
    write_curated,
    write_report,
)

__all__ = [
    "DatasetError",
    "LoadedDataset",
    "MergeAssembler",
    "MergeResult",
    "language_distribution",
    "load_dataset",
    "load_resource_keys",
    "read_dataset",
    "render_curated",
    "render_markdown",
    "report_document",
    "write_curated",
    "write_dataset",
    "write_report",
]
