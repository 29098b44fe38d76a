"""Ingestion and enrichment pipeline for open-source game entries."""

__version__ = "0.1.0"

__all__ = ["__version__"]
