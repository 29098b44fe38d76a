"""General-purpose helpers shared by the ingestion stages."""

from __future__ import annotations

import itertools
import json
import re
import unicodedata
from pathlib import Path
from typing import Iterable, Iterator, List, TypeVar

from .logging import get_logger

T = TypeVar("T")
_WORD_BOUNDARY_PATTERN = re.compile(r"\s+")
_SLUG_STRIP_PATTERN = re.compile(r"[^a-z0-9\s_-]")
_SLUG_SEPARATOR_PATTERN = re.compile(r"[\s_-]+")

_LOGGER = get_logger(module=__name__)


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace into single spaces."""

    return _WORD_BOUNDARY_PATTERN.sub(" ", text.strip())


def fold_diacritics(text: str) -> str:
    """Remove diacritics by decomposing unicode characters."""

    normalized = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def slugify(text: str) -> str:
    """Return a lowercase, URL-safe slug.

    Diacritics are folded, anything outside ``[a-z0-9]`` is dropped and runs of
    whitespace, underscores or hyphens collapse to a single hyphen. The result
    may be empty when the input carries no ASCII-representable characters.
    """

    ascii_text = fold_diacritics(text).encode("ascii", "ignore").decode("ascii")
    stripped = _SLUG_STRIP_PATTERN.sub("", ascii_text.lower())
    return _SLUG_SEPARATOR_PATTERN.sub("-", stripped).strip("-")


def ensure_directory(path: Path | str) -> Path:
    """Ensure that a directory exists and return the resolved Path."""

    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target.resolve()


def serialize_json(data: object, destination: Path | str, *, indent: int = 2) -> Path:
    """Serialize data to JSON via a temporary file swapped into place."""

    dest_path = Path(destination)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = dest_path.with_suffix(dest_path.suffix + ".tmp")
    temp_path.write_text(
        json.dumps(data, indent=indent, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    temp_path.replace(dest_path)
    _LOGGER.debug("Serialized JSON", path=str(dest_path), size=dest_path.stat().st_size)
    return dest_path


def chunked(iterable: Iterable[T], size: int) -> Iterable[List[T]]:
    """Yield chunks of a given size from the input iterable."""

    if size <= 0:
        raise ValueError("size must be positive")

    iterator: Iterator[T] = iter(iterable)
    while True:
        batch = list(itertools.islice(iterator, size))
        if not batch:
            break
        yield batch


__all__ = [
    "normalize_whitespace",
    "fold_diacritics",
    "slugify",
    "ensure_directory",
    "serialize_json",
    "chunked",
]
