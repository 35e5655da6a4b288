"""Global pagination defaults (pydantic BaseModel) and their YAML loader."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import PaginateError, PaginateErrorCodes


class PaginateSettings(BaseModel):
    """Defaults shared by every paginate call of a Paginator.

    ``default_options`` uses the same keys as per-call options and is merged
    underneath them; its ``customLabels`` are merged key by key.
    """

    default_limit: int = Field(default=10, ge=0)
    default_options: dict[str, Any] = Field(default_factory=dict)
    no_pagination_cap: int | None = Field(default=None, ge=1)
    concurrent_dispatch: bool = True


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PaginateError(
            code=PaginateErrorCodes.READ_FILE,
            message=f"Failed to read settings file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise PaginateError(
            code=PaginateErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise PaginateError(
            code=PaginateErrorCodes.PARSE_YAML,
            message=f"Settings file must contain a mapping: {path}",
        )
    return data


def load_settings(base_path: Path, env_path: Path | None = None) -> PaginateSettings:
    """Load PaginateSettings from a YAML file.

    The settings may sit at the top level or under a ``paginate`` key. When
    env_path exists it is deep-merged over the base file.
    """
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = _deep_merge(data, _read_yaml(env_path))
    section = data.get("paginate", data)
    try:
        return PaginateSettings.model_validate(section)
    except ValidationError as e:
        raise PaginateError(
            code=PaginateErrorCodes.VALIDATION,
            message=f"Settings validation failed: {e}",
            cause=e,
        ) from e
