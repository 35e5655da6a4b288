"""Custom label mapping for page results."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .page import Page

CANONICAL_FIELDS: tuple[str, ...] = (
    "docs",
    "totalDocs",
    "offset",
    "limit",
    "page",
    "totalPages",
    "pagingCounter",
    "hasPrevPage",
    "hasNextPage",
    "prevPage",
    "nextPage",
)

# meta has no default: without a meta label the result is flat.
DEFAULT_LABELS: dict[str, str] = {name: name for name in CANONICAL_FIELDS}


def _resolve(labels: Mapping[str, Any], name: str) -> str | None:
    """Return the output key for a canonical field, or None to drop it."""
    if name not in labels:
        return DEFAULT_LABELS.get(name)
    value = labels[name]
    if value is False or value == "":
        return None
    if isinstance(value, str):
        return value
    return DEFAULT_LABELS.get(name)


def apply_labels(page: Page[Any], labels: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Build the output mapping of a page under a custom label scheme.

    A string label renames the field, ``False`` or ``''`` removes it. Keys that
    are not canonical field names are ignored. When ``labels`` names a
    ``meta`` key, every field except docs is nested under that key. Later
    fields overwrite earlier ones that were given the same output name.
    """
    labels = labels or {}
    meta_label = labels.get("meta")
    if not isinstance(meta_label, str) or not meta_label:
        meta_label = None

    result: dict[str, Any] = {}
    meta: dict[str, Any] = {}
    for name, value in page.fields():
        key = _resolve(labels, name)
        if key is None:
            continue
        if name == "docs" or meta_label is None:
            result[key] = value
        else:
            meta[key] = value

    if meta_label is not None:
        result[meta_label] = meta
    return result
