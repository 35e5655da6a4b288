"""Paginator end-to-end tests against the in-memory executor."""

import asyncio
import inspect
import re
from collections.abc import Mapping
from typing import Any

import pytest

from docpaginate import (
    FindOptions,
    InMemoryQueryExecutor,
    PaginateSettings,
    Paginator,
    QueryExecutor,
    paginate,
    plugin,
)

from conftest import make_books

BOOK_QUERY = {"title": {"$in": [re.compile("Book", re.IGNORECASE)]}}


class _FailingExecutor(QueryExecutor):
    def __init__(self, fail_on: str, error: Exception) -> None:
        self.fail_on = fail_on
        self.error = error
        self.find_cancelled = False

    async def count(self, filter: Mapping[str, Any]) -> int:
        if self.fail_on == "count":
            raise self.error
        return 3

    async def find(self, filter: Mapping[str, Any], options: FindOptions) -> list[Any]:
        if self.fail_on == "find":
            raise self.error
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.find_cancelled = True
            raise
        return []


@pytest.mark.asyncio
async def test_paginate_returns_awaitable(books: InMemoryQueryExecutor) -> None:
    awaitable = Paginator(books).paginate()
    assert inspect.isawaitable(awaitable)
    result = await awaitable
    assert result["totalDocs"] == 100
    assert len(result["docs"]) == 10


@pytest.mark.asyncio
async def test_limit_and_page(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate(
        BOOK_QUERY,
        {"sort": {"_id": 1}, "limit": 10, "page": 5, "select": {"title": 1, "price": 1}},
    )
    assert len(result["docs"]) == 10
    assert result["docs"][0]["title"] == "Book #41"
    assert set(result["docs"][0]) == {"_id", "title", "price"}
    assert result["totalDocs"] == 100
    assert result["limit"] == 10
    assert result["page"] == 5
    assert result["pagingCounter"] == 41
    assert result["hasPrevPage"] is True
    assert result["hasNextPage"] is True
    assert result["prevPage"] == 4
    assert result["nextPage"] == 6
    assert result["totalPages"] == 10


@pytest.mark.asyncio
async def test_zero_limit(books: InMemoryQueryExecutor) -> None:
    query = {"title": {"$in": [re.compile("Book #1", re.IGNORECASE)]}}
    options = {
        "limit": 0,
        "sort": {"_id": 1},
        "collation": {"locale": "en", "strength": 2},
        "lean": True,
    }
    result = await Paginator(books).paginate(query, options)
    assert result["docs"] == []
    assert result["totalDocs"] == 12
    assert result["limit"] == 0
    assert result["page"] == 1
    assert result["pagingCounter"] == 1
    assert result["hasPrevPage"] is False
    assert result["hasNextPage"] is False
    assert result["prevPage"] is None
    assert result["nextPage"] is None
    assert result["totalPages"] is None


@pytest.mark.asyncio
async def test_zero_limit_still_runs_find(books: InMemoryQueryExecutor) -> None:
    await Paginator(books).paginate({}, {"limit": 0})
    finds = [call for call in books.calls if call.operation == "find"]
    assert len(finds) == 1
    assert finds[0].options.limit == 0


@pytest.mark.asyncio
async def test_empty_custom_labels(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate(
        BOOK_QUERY,
        {
            "sort": {"_id": 1},
            "limit": 10,
            "page": 5,
            "customLabels": {"nextPage": False, "prevPage": ""},
        },
    )
    assert result["docs"][0]["title"] == "Book #41"
    assert result["hasPrevPage"] is True
    assert result["hasNextPage"] is True
    assert result["totalPages"] == 10
    assert "prevPage" not in result
    assert "nextPage" not in result


@pytest.mark.asyncio
async def test_custom_labels(books: InMemoryQueryExecutor) -> None:
    labels = {
        "totalDocs": "itemCount",
        "docs": "itemsList",
        "limit": "perPage",
        "page": "currentPage",
        "nextPage": "next",
        "prevPage": "prev",
        "totalPages": "pageCount",
        "pagingCounter": "pageCounter",
        "hasPrevPage": "hasPrevious",
        "hasNextPage": "hasNext",
    }
    result = await Paginator(books).paginate(
        BOOK_QUERY,
        {"sort": {"_id": 1}, "limit": 10, "page": 5, "customLabels": labels},
    )
    assert len(result["itemsList"]) == 10
    assert result["itemsList"][0]["title"] == "Book #41"
    assert result["itemCount"] == 100
    assert result["perPage"] == 10
    assert result["currentPage"] == 5
    assert result["pageCounter"] == 41
    assert result["hasPrevious"] is True
    assert result["hasNext"] is True
    assert result["prev"] == 4
    assert result["next"] == 6
    assert result["pageCount"] == 10


@pytest.mark.asyncio
async def test_custom_meta_label(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate(
        BOOK_QUERY,
        {
            "sort": {"_id": 1},
            "limit": 10,
            "page": 5,
            "customLabels": {"meta": "meta", "docs": "itemsList", "totalDocs": "total"},
        },
    )
    assert len(result["itemsList"]) == 10
    assert result["itemsList"][0]["title"] == "Book #41"
    assert isinstance(result["meta"], dict)
    assert result["meta"]["total"] == 100
    assert set(result) == {"itemsList", "meta"}


@pytest.mark.asyncio
async def test_nested_field_query(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate(
        {"loc.type": "Point"},
        {"customLabels": {"meta": "meta", "totalDocs": "total"}},
    )
    assert result["meta"]["total"] == 100


@pytest.mark.asyncio
async def test_without_pagination(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate(BOOK_QUERY, {"pagination": False})
    assert len(result["docs"]) == 100
    assert result["totalDocs"] == 100
    assert result["limit"] == 100
    assert result["page"] == 1
    assert result["pagingCounter"] == 1
    assert result["hasPrevPage"] is False
    assert result["hasNextPage"] is False
    assert result["prevPage"] is None
    assert result["nextPage"] is None
    assert result["totalPages"] == 1


@pytest.mark.asyncio
async def test_without_pagination_and_no_matches(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate({"title": "missing"}, {"pagination": False})
    assert result["docs"] == []
    assert result["totalDocs"] == 0
    assert result["limit"] == 0
    assert result["totalPages"] is None


@pytest.mark.asyncio
async def test_without_pagination_respects_cap(books: InMemoryQueryExecutor) -> None:
    paginator = Paginator(books, PaginateSettings(no_pagination_cap=30))
    result = await paginator.paginate({}, {"pagination": False})
    assert len(result["docs"]) == 30
    assert result["totalDocs"] == 100
    assert result["page"] == 1
    assert result["totalPages"] == 1
    assert result["hasNextPage"] is False


@pytest.mark.asyncio
async def test_invalid_inputs_fall_back_to_defaults(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate({}, {"page": -5, "limit": "lots"})
    assert result["page"] == 1
    assert result["limit"] == 10
    assert len(result["docs"]) == 10


@pytest.mark.asyncio
async def test_offset_overrides_skip(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate({}, {"sort": {"_id": 1}, "offset": 25, "limit": 10})
    assert result["docs"][0]["_id"] == 26
    assert result["offset"] == 25
    assert result["page"] == 3
    assert result["pagingCounter"] == 21


@pytest.mark.asyncio
async def test_descending_sort_and_last_page(books: InMemoryQueryExecutor) -> None:
    result = await Paginator(books).paginate(
        {"price": {"$lt": 100}}, {"sort": {"price": -1}, "page": 2}
    )
    assert result["totalDocs"] == 16
    assert len(result["docs"]) == 6
    assert result["docs"][0]["title"] == "Book #6"
    assert result["hasNextPage"] is False
    assert result["nextPage"] is None
    assert result["prevPage"] == 1
    assert result["totalPages"] == 2


@pytest.mark.asyncio
async def test_count_ignores_paging(books: InMemoryQueryExecutor) -> None:
    await Paginator(books).paginate(BOOK_QUERY, {"page": 3, "limit": 5, "sort": {"_id": -1}})
    count_calls = [call for call in books.calls if call.operation == "count"]
    assert count_calls[0].filter == BOOK_QUERY
    assert count_calls[0].options is None


@pytest.mark.asyncio
async def test_settings_defaults_apply(books: InMemoryQueryExecutor) -> None:
    settings = PaginateSettings(
        default_options={"limit": 25, "customLabels": {"docs": "items"}}
    )
    paginator = Paginator(books, settings)
    result = await paginator.paginate({}, {"page": 2})
    assert len(result["items"]) == 25
    assert result["totalPages"] == 4
    result = await paginator.paginate({}, {"customLabels": {"docs": "rows"}})
    assert "rows" in result
    assert "items" not in result


@pytest.mark.asyncio
async def test_labels_do_not_leak_between_calls(books: InMemoryQueryExecutor) -> None:
    paginator = Paginator(books)
    await paginator.paginate({}, {"customLabels": {"docs": "items", "nextPage": False}})
    result = await paginator.paginate({})
    assert "docs" in result
    assert "nextPage" in result


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [True, False])
async def test_executor_error_propagates_unchanged(concurrent: bool) -> None:
    error = RuntimeError("connection lost")
    paginator = Paginator(
        _FailingExecutor("count", error), PaginateSettings(concurrent_dispatch=concurrent)
    )
    with pytest.raises(RuntimeError) as exc_info:
        await paginator.paginate({})
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_count_failure_cancels_find() -> None:
    executor = _FailingExecutor("count", ValueError("bad filter"))
    with pytest.raises(ValueError, match="bad filter"):
        await Paginator(executor).paginate({})
    assert executor.find_cancelled is True


@pytest.mark.asyncio
async def test_find_error_propagates() -> None:
    with pytest.raises(ValueError, match="bad sort"):
        await Paginator(_FailingExecutor("find", ValueError("bad sort"))).paginate({})


@pytest.mark.asyncio
async def test_callback_inside_event_loop(books: InMemoryQueryExecutor) -> None:
    loop = asyncio.get_running_loop()
    received: asyncio.Future = loop.create_future()

    returned = Paginator(books).paginate(
        {}, {}, lambda err, result: received.set_result((err, result))
    )

    assert returned is None
    err, result = await received
    assert err is None
    assert isinstance(result, dict)
    assert result == await Paginator(books).paginate({}, {})


@pytest.mark.asyncio
async def test_callback_receives_error() -> None:
    error = RuntimeError("boom")
    loop = asyncio.get_running_loop()
    received: asyncio.Future = loop.create_future()

    Paginator(_FailingExecutor("find", error)).paginate(
        {}, {}, lambda err, result: received.set_result((err, result))
    )

    err, result = await received
    assert err is error
    assert result is None


def test_callback_without_running_loop() -> None:
    calls = []
    executor = InMemoryQueryExecutor(make_books(12))

    returned = Paginator(executor).paginate(
        {}, {"limit": 5}, lambda err, result: calls.append((err, result))
    )

    assert returned is None
    assert len(calls) == 1
    err, result = calls[0]
    assert err is None
    assert result["totalDocs"] == 12
    assert result["totalPages"] == 3


def test_callback_without_running_loop_receives_error() -> None:
    calls = []
    error = RuntimeError("boom")
    paginate(
        _FailingExecutor("count", error),
        {},
        {},
        lambda err, result: calls.append((err, result)),
    )
    assert calls == [(error, None)]


@pytest.mark.asyncio
async def test_module_level_paginate(books: InMemoryQueryExecutor) -> None:
    result = await paginate(books, {}, {"limit": 3})
    assert len(result["docs"]) == 3


@pytest.mark.asyncio
async def test_plugin_attaches_paginate(books: InMemoryQueryExecutor) -> None:
    class Book:
        pass

    assert plugin(Book, books) is Book
    result = await Book.paginate({}, {"page": 10})
    assert result["page"] == 10
    assert result["hasNextPage"] is False
    assert isinstance(Book.paginator, Paginator)
