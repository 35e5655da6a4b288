"""Paginator: dispatches count/find to a QueryExecutor and shapes the result."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from .config import PaginateSettings
from .executor import QueryExecutor
from .labels import apply_labels
from .options import PaginateOptions, ResolvedOptions, resolve_options
from .page import Page

T = TypeVar("T")

Callback = Callable[[BaseException | None, dict[str, Any] | None], None]

logger = logging.getLogger(__name__)

# Strong references to callback-mode tasks until they finish.
_pending_tasks: set[asyncio.Task[Any]] = set()


async def _gather_first_error(
    first: Awaitable[Any], second: Awaitable[Any]
) -> tuple[Any, Any]:
    """Run two awaitables concurrently; the first failure cancels the other."""
    tasks = [asyncio.ensure_future(first), asyncio.ensure_future(second)]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise
    for task in done:
        if not task.cancelled() and task.exception() is not None:
            for other in pending:
                other.cancel()
            if pending:
                await asyncio.wait(pending)
            raise task.exception()  # type: ignore[misc]
    return tasks[0].result(), tasks[1].result()


class Paginator:
    """Page-based pagination over a QueryExecutor.

    Each call is independent; the paginator holds no per-call state.
    """

    def __init__(
        self, executor: QueryExecutor, settings: PaginateSettings | None = None
    ) -> None:
        self._executor = executor
        self._settings = settings or PaginateSettings()

    @property
    def settings(self) -> PaginateSettings:
        return self._settings

    async def fetch_page(
        self,
        query: Mapping[str, Any] | None = None,
        options: PaginateOptions | Mapping[str, Any] | None = None,
    ) -> tuple[Page[Any], ResolvedOptions]:
        """Run count and find, returning the canonical page and the options used."""
        query = {} if query is None else query
        resolved = resolve_options(options, self._settings)
        find_options = resolved.find_options(self._settings.no_pagination_cap)

        concurrent = self._settings.concurrent_dispatch
        logger.debug(
            "Dispatching paginate query",
            extra={"skip": find_options.skip, "limit": find_options.limit, "concurrent": concurrent},
        )
        if concurrent:
            total_docs, docs = await _gather_first_error(
                self._executor.count(query),
                self._executor.find(query, find_options),
            )
        else:
            total_docs = await self._executor.count(query)
            docs = await self._executor.find(query, find_options)

        limit = resolved.limit if resolved.pagination else total_docs
        page = Page.create(
            docs=list(docs),
            total_docs=total_docs,
            limit=limit,
            page=resolved.page,
            offset=resolved.offset,
        )
        logger.debug(
            "Paginate query completed",
            extra={"total_docs": total_docs, "returned": len(page.docs)},
        )
        return page, resolved

    async def paginate_async(
        self,
        query: Mapping[str, Any] | None = None,
        options: PaginateOptions | Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Return the labelled page result for query."""
        page, resolved = await self.fetch_page(query, options)
        return apply_labels(page, resolved.custom_labels)

    def paginate(
        self,
        query: Mapping[str, Any] | None = None,
        options: PaginateOptions | Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> Awaitable[dict[str, Any]] | None:
        """Paginate query.

        Without a callback this returns an awaitable resolving to the result.
        With one, ``callback(error, result)`` is called exactly once and None
        is returned. Inside a running event loop the work is scheduled as a
        task; otherwise it is run to completion before returning.
        """
        coro = self.paginate_async(query, options)
        if callback is None:
            return coro
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                result = asyncio.run(coro)
            except Exception as e:
                callback(e, None)
            else:
                callback(None, result)
            return None

        def _done(task: asyncio.Task[dict[str, Any]]) -> None:
            _pending_tasks.discard(task)
            if task.cancelled():
                callback(asyncio.CancelledError(), None)
                return
            error = task.exception()
            if error is not None:
                callback(error, None)
            else:
                callback(None, task.result())

        task = loop.create_task(coro)
        _pending_tasks.add(task)
        task.add_done_callback(_done)
        return None


def paginate(
    executor: QueryExecutor,
    query: Mapping[str, Any] | None = None,
    options: PaginateOptions | Mapping[str, Any] | None = None,
    callback: Callback | None = None,
    settings: PaginateSettings | None = None,
) -> Awaitable[dict[str, Any]] | None:
    """Paginate query against executor with a one-off Paginator."""
    return Paginator(executor, settings).paginate(query, options, callback)


def plugin(target: T, executor: QueryExecutor, settings: PaginateSettings | None = None) -> T:
    """Attach a ``paginate`` method to target (a model class or collection wrapper).

    Returns target so it can be used as ``Book = plugin(Book, executor)``.
    """
    paginator = Paginator(executor, settings)
    setattr(target, "paginate", paginator.paginate)
    setattr(target, "paginator", paginator)
    return target
