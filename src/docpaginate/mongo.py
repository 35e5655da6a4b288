"""MotorQueryExecutor: QueryExecutor backed by a motor collection."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection

from .executor import FindOptions, QueryExecutor, normalize_projection, normalize_sort


class MotorQueryExecutor(QueryExecutor):
    """QueryExecutor over an ``AsyncIOMotorCollection``.

    Args:
        collection: the collection to query.
        document_factory: applied to each raw document when the call is not
            lean, e.g. a pydantic model's ``model_validate``.
        use_estimated_count: use ``estimated_document_count`` for empty filters.
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        *,
        document_factory: Callable[[dict[str, Any]], Any] | None = None,
        use_estimated_count: bool = False,
    ) -> None:
        self._collection = collection
        self._document_factory = document_factory
        self._use_estimated_count = use_estimated_count

    async def count(self, filter: Mapping[str, Any]) -> int:
        if self._use_estimated_count and not filter:
            return await self._collection.estimated_document_count()
        return await self._collection.count_documents(filter)

    async def find(self, filter: Mapping[str, Any], options: FindOptions) -> list[Any]:
        kwargs: dict[str, Any] = dict(options.extra)
        sort = normalize_sort(options.sort)
        if sort:
            kwargs["sort"] = sort
        if options.collation:
            kwargs["collation"] = options.collation
        if options.skip:
            kwargs["skip"] = options.skip

        # MongoDB reads limit 0 as "no limit": run the query for one document
        # and discard it so the filter and sort are still evaluated.
        fetch = 1 if options.limit == 0 else options.limit
        if fetch:
            kwargs["limit"] = fetch

        cursor = self._collection.find(filter, normalize_projection(options.projection), **kwargs)
        docs = await cursor.to_list(length=fetch)
        if options.limit == 0:
            return []
        if not options.lean and self._document_factory is not None:
            return [self._document_factory(doc) for doc in docs]
        return docs
