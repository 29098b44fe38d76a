"""Reading and writing the canonical dataset document."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, FrozenSet, List, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from ...entities.core import CanonicalDataset, CanonicalRecord, RunError, resource_key
from ...utils import get_logger, serialize_json

_LOGGER = get_logger(module=__name__)

_RowT = TypeVar("_RowT", bound=BaseModel)
_TIMESTAMP = TypeAdapter(datetime)


class DatasetError(RuntimeError):
    """The canonical dataset could not be read or written."""


@dataclass
class LoadedDataset:
    """Dataset read from disk plus the number of rows that failed validation."""

    dataset: CanonicalDataset
    dropped_rows: int = 0


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _validate_rows(rows: Sequence[Any], model: Type[_RowT], *, path: Path, section: str) -> Tuple[List[_RowT], int]:
    valid: List[_RowT] = []
    dropped = 0
    for index, row in enumerate(rows):
        try:
            valid.append(model.model_validate(row))
        except ValidationError as exc:
            dropped += 1
            _LOGGER.warning(
                "Dropping invalid dataset row",
                path=str(path),
                section=section,
                index=index,
                error=str(exc),
            )
    return valid, dropped


def _section(raw: dict, key: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return value


def read_dataset(path: Path | str, *, required: bool = False) -> LoadedDataset:
    """Read the dataset at ``path`` row by row.

    Accepts the structured document (``games`` key) or a bare list of records.
    A missing file, or one that is not a JSON document of either shape, yields
    an empty dataset unless ``required`` is set, in which case
    :class:`DatasetError` is raised. Individual rows that fail validation are
    logged and dropped while the valid ones are kept.
    """

    dataset_path = Path(path)
    if not dataset_path.exists():
        if required:
            raise DatasetError(f"Dataset not found: {dataset_path}")
        _LOGGER.info("No existing dataset; starting empty", path=str(dataset_path))
        return LoadedDataset(CanonicalDataset())

    try:
        raw = _read_json(dataset_path)
        if isinstance(raw, list):
            game_rows, error_rows, scraped_at = raw, [], None
        elif isinstance(raw, dict):
            game_rows = _section(raw, "games")
            error_rows = _section(raw, "errors")
            scraped_at = raw.get("scraped_at", raw.get("scrapedAt"))
        else:
            raise ValueError("top-level JSON must be an object or a list")
    except (OSError, ValueError) as exc:
        if required:
            raise DatasetError(f"Unreadable dataset {dataset_path}: {exc}") from exc
        _LOGGER.warning("Unreadable dataset treated as empty", path=str(dataset_path), error=str(exc))
        return LoadedDataset(CanonicalDataset())

    games, dropped_games = _validate_rows(game_rows, CanonicalRecord, path=dataset_path, section="games")
    errors, dropped_errors = _validate_rows(error_rows, RunError, path=dataset_path, section="errors")
    fields: dict = {"games": games, "errors": errors}
    if scraped_at is not None:
        try:
            fields["scraped_at"] = _TIMESTAMP.validate_python(scraped_at)
        except ValidationError:
            _LOGGER.warning("Ignoring invalid dataset timestamp", path=str(dataset_path), value=str(scraped_at))
    dataset = CanonicalDataset(**fields)

    dropped = dropped_games + dropped_errors
    _LOGGER.info("Loaded dataset", path=str(dataset_path), records=dataset.total_games, dropped_rows=dropped)
    return LoadedDataset(dataset, dropped_rows=dropped)


def load_dataset(path: Path | str, *, required: bool = False) -> CanonicalDataset:
    """Return only the dataset from :func:`read_dataset`."""

    return read_dataset(path, required=required).dataset


def load_resource_keys(path: Path | str) -> FrozenSet[str]:
    """Return resource keys from any dataset-like file for dedup context.

    Rows only need ``owner``/``repo`` (or ``resource_owner``/``resource_name``);
    rows without them are ignored.
    """

    dataset_path = Path(path)
    try:
        raw = _read_json(dataset_path)
    except (OSError, ValueError) as exc:
        raise DatasetError(f"Unreadable dedup context {dataset_path}: {exc}") from exc

    rows: List[Any] = []
    if isinstance(raw, dict):
        rows = raw.get("games") or []
    elif isinstance(raw, list):
        rows = raw
    keys = set()
    for row in rows:
        if not isinstance(row, dict):
            continue
        owner = row.get("resource_owner") or row.get("owner")
        name = row.get("resource_name") or row.get("repo")
        if owner and name:
            keys.add(resource_key(str(owner), str(name)))
    _LOGGER.info("Loaded dedup context", path=str(dataset_path), keys=len(keys))
    return frozenset(keys)


def write_dataset(dataset: CanonicalDataset, path: Path | str) -> Path:
    try:
        written = serialize_json(dataset.to_document(), path)
    except OSError as exc:
        raise DatasetError(f"Unable to write dataset {path}: {exc}") from exc
    _LOGGER.info("Wrote dataset", path=str(written), records=dataset.total_games)
    return written


__all__ = [
    "DatasetError",
    "LoadedDataset",
    "load_dataset",
    "load_resource_keys",
    "read_dataset",
    "write_dataset",
]
