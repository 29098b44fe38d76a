"""Command-line interface for the ossgames ingestion pipeline."""

from .main import app

__all__ = ["app"]
