"""Pagination option normalization.

Bad page, limit or offset values never raise: they fall back to the
defaults. Numeric strings are accepted.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .config import PaginateSettings
from .executor import FindOptions

DEFAULT_PAGE = 1


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return None


class PaginateOptions(BaseModel):
    """Caller-supplied options for one paginate call.

    Unset or invalid numeric fields are None here; ``resolve_options`` fills
    in the defaults. Unknown keys are kept and passed to the executor.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    page: int | None = None
    limit: int | None = None
    offset: int | None = None
    sort: Any = None
    select: Any = Field(default=None, validation_alias=AliasChoices("select", "projection"))
    collation: dict[str, Any] | None = None
    lean: bool | None = None
    pagination: bool | None = None
    custom_labels: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("customLabels", "custom_labels"),
    )

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any) -> int | None:
        number = _to_int(value)
        return number if number is not None and number >= 1 else None

    @field_validator("limit", "offset", mode="before")
    @classmethod
    def _coerce_non_negative(cls, value: Any) -> int | None:
        number = _to_int(value)
        return number if number is not None and number >= 0 else None

    @field_validator("lean", "pagination", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool | None:
        return _to_bool(value)

    @field_validator("collation", mode="before")
    @classmethod
    def _coerce_collation(cls, value: Any) -> dict[str, Any] | None:
        return dict(value) if isinstance(value, Mapping) else None

    @field_validator("custom_labels", mode="before")
    @classmethod
    def _coerce_labels(cls, value: Any) -> dict[str, Any]:
        return dict(value) if isinstance(value, Mapping) else {}

    @classmethod
    def coerce(cls, options: PaginateOptions | Mapping[str, Any] | None) -> PaginateOptions:
        if isinstance(options, PaginateOptions):
            return options
        if isinstance(options, Mapping):
            return cls.model_validate(dict(options))
        return cls()


@dataclass(frozen=True)
class ResolvedOptions:
    """Fully defined options for one call."""

    page: int
    limit: int
    skip: int
    pagination: bool = True
    offset: int | None = None
    sort: Any = None
    projection: Any = None
    collation: dict[str, Any] | None = None
    lean: bool = False
    custom_labels: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def find_options(self, cap: int | None = None) -> FindOptions:
        """Return executor fetch parameters; cap bounds unpaginated fetches."""
        return FindOptions(
            sort=self.sort,
            projection=self.projection,
            collation=self.collation,
            skip=self.skip,
            limit=self.limit if self.pagination else cap,
            lean=self.lean,
            extra=dict(self.extra),
        )


def _merge(defaults: PaginateOptions, call: PaginateOptions) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for source in (defaults, call):
        for name in PaginateOptions.model_fields:
            if name == "custom_labels":
                continue
            value = getattr(source, name)
            if value is not None and name in source.model_fields_set:
                merged[name] = value
    merged["custom_labels"] = {**defaults.custom_labels, **call.custom_labels}
    merged["extra"] = {**(defaults.model_extra or {}), **(call.model_extra or {})}
    return merged


def resolve_options(
    options: PaginateOptions | Mapping[str, Any] | None = None,
    settings: PaginateSettings | None = None,
) -> ResolvedOptions:
    """Merge per-call options over the settings defaults and derive skip/page."""
    settings = settings or PaginateSettings()
    merged = _merge(
        PaginateOptions.coerce(settings.default_options),
        PaginateOptions.coerce(options),
    )

    limit: int = merged.get("limit", settings.default_limit)
    page: int | None = merged.get("page")
    offset: int | None = merged.get("offset")
    pagination: bool = merged.get("pagination", True)

    if not pagination:
        page, skip, offset = DEFAULT_PAGE, 0, None
    elif offset is not None:
        skip = offset
        if page is None:
            page = math.ceil((offset + 1) / limit) if limit > 0 else DEFAULT_PAGE
    else:
        page = page or DEFAULT_PAGE
        skip = (page - 1) * limit

    return ResolvedOptions(
        page=page,
        limit=limit,
        skip=skip,
        pagination=pagination,
        offset=offset,
        sort=merged.get("sort"),
        projection=merged.get("select"),
        collation=merged.get("collation"),
        lean=merged.get("lean", False),
        custom_labels=merged["custom_labels"],
        extra=merged["extra"],
    )
