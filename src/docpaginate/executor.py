"""QueryExecutor abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass
class FindOptions:
    """Bounded fetch parameters handed to QueryExecutor.find.

    ``limit`` of 0 means no documents; ``None`` means unbounded.
    """

    sort: Any = None
    projection: Any = None
    collation: Mapping[str, Any] | None = None
    skip: int = 0
    limit: int | None = None
    lean: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


class QueryExecutor(ABC):
    """Count and find capability over a document collection."""

    @abstractmethod
    async def count(self, filter: Mapping[str, Any]) -> int:
        """Return the number of documents matching filter, ignoring paging."""
        ...

    @abstractmethod
    async def find(self, filter: Mapping[str, Any], options: FindOptions) -> list[Any]:
        """Return the matching documents, sorted, projected and bounded."""
        ...


def normalize_sort(sort: Any) -> list[tuple[str, int]]:
    """Return sort as (field, 1 | -1) pairs.

    Accepts a mapping, a list of pairs, or a ``"-price title"`` string.
    """
    if not sort:
        return []
    if isinstance(sort, Mapping):
        items = list(sort.items())
    elif isinstance(sort, str):
        items = [
            (part[1:], -1) if part.startswith("-") else (part, 1) for part in sort.split()
        ]
    else:
        items = [tuple(item) for item in sort]
    return [
        (name, -1 if str(direction).lower() in ("-1", "desc", "descending") else 1)
        for name, direction in items
    ]


def normalize_projection(projection: Any) -> dict[str, Any] | None:
    """Return projection as a field mapping, or None for all fields.

    Accepts a mapping, a list of field names, or a ``"title -price"`` string.
    """
    if not projection:
        return None
    if isinstance(projection, Mapping):
        return dict(projection)
    if isinstance(projection, str):
        return {
            part[1:] if part.startswith("-") else part: 0 if part.startswith("-") else 1
            for part in projection.split()
        }
    return {name: 1 for name in projection}
