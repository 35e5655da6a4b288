"""Shared fixtures: a 100-book collection."""

from datetime import datetime, timedelta

import pytest
from docpaginate import InMemoryQueryExecutor


def make_books(count: int = 100) -> list[dict]:
    base = datetime(2024, 1, 1)
    return [
        {
            "_id": i,
            "title": f"Book #{i}",
            "price": i * 5 + i,
            "date": base + timedelta(milliseconds=i),
            "author": "Arthur Conan Doyle",
            "loc": {"type": "Point", "coordinates": [-10.97, 20.77]},
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def books() -> InMemoryQueryExecutor:
    return InMemoryQueryExecutor(make_books())
