"""Configuration management built on top of the policy primitives."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .policies import Policies, load_policies

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "default.yaml"


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries."""

    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _apply_env_overrides(base: Dict[str, Any]) -> Dict[str, Any]:
    """Apply overrides from OSSGAMES_SETTINGS__* environment variables."""

    prefix = "OSSGAMES_SETTINGS__"
    result = dict(base)
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        path = key[len(prefix) :].lower().split("__")
        cursor = result
        for part in path[:-1]:
            cursor = cursor.setdefault(part, {})
        cursor[path[-1]] = value
    return result


def _absolute(path: Path) -> Path:
    path = Path(path)
    return path if path.is_absolute() else PROJECT_ROOT / path


class PathsConfig(BaseModel):
    """Filesystem layout for persistent artefacts.

    Relative paths are anchored at the project root. ``dataset_file`` defaults
    to ``games.json`` inside ``data_dir``.
    """

    data_dir: Path = Field(default=Path("data"))
    logs_dir: Path = Field(default=Path("logs"))
    dataset_file: Path | None = Field(default=None)

    @property
    def resolved_dataset_file(self) -> Path:
        if self.dataset_file is not None:
            return _absolute(self.dataset_file)
        return _absolute(self.data_dir) / "games.json"

    def ensure_exists(self) -> None:
        """Create ``data_dir``, ``logs_dir`` and the dataset file's parent."""
        for path in (_absolute(self.data_dir), _absolute(self.logs_dir), self.resolved_dataset_file.parent):
            path.mkdir(parents=True, exist_ok=True)


class Settings(BaseSettings):
    """Primary configuration object for the ingestion application.

    Precedence (highest first): explicit kwargs or CLI arguments, environment
    variables prefixed with ``OSSGAMES_`` (handled by :class:`BaseSettings`),
    nested overrides via ``OSSGAMES_SETTINGS__`` variables, environment-specific
    YAML (e.g. ``production.yaml``), the default YAML file, and finally the
    class defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="OSSGAMES_",
        validate_assignment=True,
        extra="allow",
    )

    environment: Literal["development", "testing", "production"] = Field(
        default="development",
        description="Active runtime environment",
    )
    config_dir: Path = Field(default=DEFAULT_CONFIG_DIR)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    create_dirs: bool = Field(
        default=True,
        description="Create filesystem directories declared in `paths` during initialisation.",
    )
    policies: Policies

    @model_validator(mode="before")
    @classmethod
    def _bootstrap_from_files(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        """Load YAML files and merge with provided overrides."""

        config_dir = Path(values.get("config_dir") or DEFAULT_CONFIG_DIR)
        environment = values.get("environment") or os.getenv("OSSGAMES_ENV", "development")
        base_config = _load_yaml_file(config_dir / "default.yaml")
        env_config = _load_yaml_file(config_dir / f"{environment}.yaml")
        merged = deep_merge(base_config, env_config)
        hydrated = _apply_env_overrides(merged)

        combined = deep_merge(hydrated, {k: v for k, v in values.items() if v is not None})

        policies_data = combined.pop("policies", None)
        if isinstance(policies_data, Policies):
            combined["policies"] = policies_data
            return combined

        candidate = {
            key: combined.pop(key)
            for key in list(Policies.model_fields.keys())
            if key in combined
        }
        sections = {k: v for k, v in candidate.items() if v is not None}
        if isinstance(policies_data, dict):
            sections = deep_merge(sections, policies_data)
        policies_data = sections
        combined["policies"] = load_policies(policies_data)
        return combined

    @model_validator(mode="after")
    def _ensure_paths(self) -> "Settings":
        """Ensure filesystem paths exist when directory creation is enabled."""

        if self.create_dirs:
            self.paths.ensure_exists()
        return self

    @property
    def policy_version(self) -> str:
        return self.policies.policy_version

    @property
    def dataset_file(self) -> Path:
        return self.paths.resolved_dataset_file

    @property
    def logs_dir(self) -> Path:
        return _absolute(self.paths.logs_dir)

    @property
    def github_token(self) -> str | None:
        """Token read from the environment variable named by the enrichment policy."""

        value = os.getenv(self.policies.enrichment.token_env_var, "").strip()
        return value or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a singleton settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings", "PathsConfig", "PROJECT_ROOT", "deep_merge"]
