"""Shared state and option parsing for the ossgames CLI commands."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

import typer
from rich.console import Console

from ossgames.config.policies import Policies
from ossgames.config.settings import Settings, deep_merge

console = Console()

_OVERRIDE_SECTIONS = frozenset(Settings.model_fields) | frozenset(Policies.model_fields)


class CLIError(RuntimeError):
    """Bad user input, reported without a traceback."""


@dataclass(slots=True)
class CLIState:
    """Resolved settings and run identity handed to every subcommand."""

    settings: Settings
    run_id: str
    log_path: Path | None
    verbose: bool


def parse_overrides(items: Iterable[str]) -> Dict[str, Any]:
    """Fold ``section.key=value`` arguments into one nested override mapping.

    Values are decoded as JSON when possible (``5``, ``true``, ``["a"]``) and
    kept as plain strings otherwise. The first segment must be a settings
    field or a policy section such as ``search`` or ``enrichment``.
    """

    merged: Dict[str, Any] = {}
    for item in items:
        dotted, separator, raw = item.partition("=")
        segments = [segment.strip() for segment in dotted.split(".") if segment.strip()]
        if not separator or not segments:
            raise typer.BadParameter(f"Override '{item}' must look like section.key=value")
        if segments[0] not in _OVERRIDE_SECTIONS:
            raise CLIError(f"Unknown configuration section '{segments[0]}' in override '{item}'")
        try:
            value: Any = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        for segment in reversed(segments):
            value = {segment: value}
        merged = deep_merge(merged, value)
    return merged


def load_settings(environment: str | None, overrides: Dict[str, Any]) -> Settings:
    payload = dict(overrides)
    if environment:
        payload["environment"] = environment
    try:
        return Settings(**payload)
    except ValueError as exc:
        raise CLIError(f"Invalid configuration: {exc}") from exc


def get_state(ctx: typer.Context) -> CLIState:
    if not isinstance(ctx.obj, CLIState):
        raise CLIError("CLI context is not initialised")
    return ctx.obj


def resolve_path(path: str | Path, *, must_exist: bool = True) -> Path:
    """Expand and absolutise ``path``, optionally requiring that it exists."""

    target = Path(path).expanduser().resolve()
    if must_exist and not target.exists():
        raise CLIError(f"Path does not exist: {target}")
    return target


__all__ = [
    "CLIError",
    "CLIState",
    "console",
    "get_state",
    "load_settings",
    "parse_overrides",
    "resolve_path",
]
