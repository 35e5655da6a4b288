"""Page-based pagination metadata."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class PaginationMeta:
    """Navigation metadata for one page."""

    total_docs: int
    limit: int
    page: int
    total_pages: int | None
    paging_counter: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: int | None
    next_page: int | None


def compute_meta(total_docs: int, limit: int, page: int) -> PaginationMeta:
    """Compute navigation metadata from (total_docs, limit, page).

    A zero limit leaves the page count undefined, reported as None even when
    total_docs is 0.
    """
    total_pages = math.ceil(total_docs / limit) if limit > 0 else None
    has_prev_page = page > 1 and (total_pages is None or page <= total_pages)
    has_next_page = total_pages is not None and page < total_pages
    return PaginationMeta(
        total_docs=total_docs,
        limit=limit,
        page=page,
        total_pages=total_pages,
        paging_counter=(page - 1) * limit + 1,
        has_prev_page=has_prev_page,
        has_next_page=has_next_page,
        prev_page=page - 1 if has_prev_page else None,
        next_page=page + 1 if has_next_page else None,
    )


@dataclass
class Page(Generic[T]):
    """Canonical page result before label mapping."""

    docs: list[T]
    meta: PaginationMeta
    offset: int | None = None

    @classmethod
    def create(
        cls,
        docs: list[T],
        total_docs: int,
        limit: int,
        page: int,
        offset: int | None = None,
    ) -> Page[T]:
        return cls(docs=docs, meta=compute_meta(total_docs, limit, page), offset=offset)

    def fields(self) -> list[tuple[str, object]]:
        """Return (canonical name, value) pairs in output order."""
        meta = self.meta
        pairs: list[tuple[str, object]] = [
            ("docs", self.docs),
            ("totalDocs", meta.total_docs),
        ]
        if self.offset is not None:
            pairs.append(("offset", self.offset))
        pairs.extend(
            [
                ("limit", meta.limit),
                ("page", meta.page),
                ("totalPages", meta.total_pages),
                ("pagingCounter", meta.paging_counter),
                ("hasPrevPage", meta.has_prev_page),
                ("hasNextPage", meta.has_next_page),
                ("prevPage", meta.prev_page),
                ("nextPage", meta.next_page),
            ]
        )
        return pairs
