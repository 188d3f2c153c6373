from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, ValidationError, field_validator

from repo_to_text.config import (
    DEFAULT_HISTORY_TIMEOUT,
    DEFAULT_IGNORE_FILE,
    DEFAULT_OUTPUT,
    ENV_PREFIX,
    HistoryPolicy,
)
from repo_to_text.exceptions import ConfigError

ENV_FILE = find_dotenv(usecwd=True)


class Settings(BaseModel):
    """Configuration settings for the repo_to_text package."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    repo: Path = Field(default_factory=Path.cwd, description="Repository root.")
    output: Path = Field(default=Path(DEFAULT_OUTPUT), description="Output file name.")
    ignore_file: str = Field(
        default=DEFAULT_IGNORE_FILE,
        description="Ignore-spec file at the repository root; empty disables it.",
    )
    history: bool = Field(default=True, description="Append the git history.")
    history_policy: HistoryPolicy = Field(
        default=HistoryPolicy.OMIT,
        description="Omit the history or fail the run when git log fails.",
    )
    history_timeout: PositiveFloat | None = Field(
        default=DEFAULT_HISTORY_TIMEOUT,
        description="Seconds to wait for git log; 0, 'none' or None waits forever.",
    )
    log_file: str = Field(default="", description="Log file path.")
    verbose: bool = Field(default=False, description="Log debug events.")

    @field_validator("history_timeout", mode="before")
    @classmethod
    def _parse_history_timeout(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip().lower()
            if value in {"", "none"}:
                return None
            try:
                value = float(value)
            except ValueError:
                return value
        if isinstance(value, int | float) and not isinstance(value, bool) and value == 0:
            return None
        return value


def env_overrides(env_file: str | None = None) -> dict[str, Any]:
    """Collect `REPO_TO_TEXT_*` settings from a `.env` file and the environment.

    Process environment variables win over the `.env` file.

    Args:
        env_file (str | None): the `.env` file to read; defaults to the nearest one
            found from the current directory

    Returns:
        dict[str, Any]: raw values keyed by Settings field name
    """
    path = ENV_FILE if env_file is None else env_file
    values: dict[str, str | None] = dict(dotenv_values(path)) if path else {}
    values.update(os.environ)
    out: dict[str, Any] = {}
    for key, value in values.items():
        if not key.startswith(ENV_PREFIX) or value is None:
            continue
        field = key.removeprefix(ENV_PREFIX).lower()
        if field in Settings.model_fields:
            out[field] = value
    return out


def load_config_file(path: Path) -> dict[str, Any]:
    """Load settings from a YAML mapping of field names to values.

    Args:
        path (Path): the YAML file to load

    Raises:
        ConfigError: if the file cannot be read, parsed, or is not a mapping

    Returns:
        dict[str, Any]: raw values keyed by Settings field name
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(path=path, reason=e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(path=path, reason=str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(path=path, reason="expected a mapping of settings")
    unknown = sorted(str(k) for k in data if k not in Settings.model_fields)
    if unknown:
        raise ConfigError(path=path, reason=f"unknown settings: {', '.join(unknown)}")
    return data


def build_settings(
    cli_values: dict[str, Any],
    *,
    config_file: Path | None = None,
    env_file: str | None = None,
) -> Settings:
    """Merge defaults, environment, config file and CLI values into Settings.

    Args:
        cli_values (dict[str, Any]): values given explicitly on the command line
        config_file (Path | None): optional YAML config file
        env_file (str | None): optional `.env` file overriding the discovered one

    Raises:
        ConfigError: if the config file is invalid or a value fails validation

    Returns:
        Settings: the validated settings
    """
    merged: dict[str, Any] = env_overrides(env_file)
    if config_file is not None:
        merged.update(load_config_file(config_file))
    merged.update(cli_values)
    try:
        return Settings(**merged)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigError(path=config_file, reason=f"invalid value for {fields}") from e
