"""InMemoryQueryExecutor implementation."""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any

from .executor import FindOptions, QueryExecutor, normalize_projection, normalize_sort

_MISSING = object()


@dataclass
class ExecutorCall:
    """A recorded executor invocation."""

    operation: str
    filter: dict[str, Any]
    options: FindOptions | None = None


def _get_path(document: Mapping[str, Any], path: str) -> Any:
    node: Any = document
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _fold(value: Any, case_insensitive: bool) -> Any:
    if case_insensitive and isinstance(value, str):
        return value.casefold()
    return value


def _compare(a: Any, b: Any, case_insensitive: bool = False) -> int:
    # Missing and None sort first, as in MongoDB.
    if a is _MISSING or a is None:
        return 0 if (b is _MISSING or b is None) else -1
    if b is _MISSING or b is None:
        return 1
    a, b = _fold(a, case_insensitive), _fold(b, case_insensitive)
    try:
        return (a > b) - (a < b)
    except TypeError:
        return (type(a).__name__ > type(b).__name__) - (type(a).__name__ < type(b).__name__)


def _matches_value(value: Any, expected: Any, case_insensitive: bool) -> bool:
    if isinstance(expected, re.Pattern):
        return isinstance(value, str) and expected.search(value) is not None
    if isinstance(value, list) and not isinstance(expected, list):
        return any(_matches_value(item, expected, case_insensitive) for item in value)
    if value is _MISSING:
        return expected is None
    return _fold(value, case_insensitive) == _fold(expected, case_insensitive)


def _matches_operator(value: Any, op: str, arg: Any, case_insensitive: bool) -> bool:
    if op == "$eq":
        return _matches_value(value, arg, case_insensitive)
    if op == "$ne":
        return not _matches_value(value, arg, case_insensitive)
    if op in ("$gt", "$gte", "$lt", "$lte"):
        if value is _MISSING or value is None:
            return False
        result = _compare(value, arg, case_insensitive)
        return {
            "$gt": result > 0,
            "$gte": result >= 0,
            "$lt": result < 0,
            "$lte": result <= 0,
        }[op]
    if op == "$in":
        return any(_matches_value(value, item, case_insensitive) for item in arg)
    if op == "$nin":
        return not any(_matches_value(value, item, case_insensitive) for item in arg)
    if op == "$exists":
        return (value is not _MISSING) == bool(arg)
    if op == "$regex":
        pattern = arg if isinstance(arg, re.Pattern) else re.compile(arg)
        return isinstance(value, str) and pattern.search(value) is not None
    if op == "$options":
        return True
    raise ValueError(f"unsupported query operator: {op}")


def _compile_regex_options(condition: Mapping[str, Any]) -> dict[str, Any]:
    condition = dict(condition)
    if "$regex" in condition and "$options" in condition:
        flags = re.IGNORECASE if "i" in condition["$options"] else 0
        condition["$regex"] = re.compile(condition["$regex"], flags)
    return condition


def matches(
    document: Mapping[str, Any], filter: Mapping[str, Any], case_insensitive: bool = False
) -> bool:
    """Return True when document satisfies the filter."""
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches(document, sub, case_insensitive) for sub in condition):
                return False
            continue
        if key == "$or":
            if not any(matches(document, sub, case_insensitive) for sub in condition):
                return False
            continue
        if key.startswith("$"):
            raise ValueError(f"unsupported query operator: {key}")
        value = _get_path(document, key)
        if isinstance(condition, Mapping) and condition and all(
            k.startswith("$") for k in condition
        ):
            condition = _compile_regex_options(condition)
            if not all(
                _matches_operator(value, op, arg, case_insensitive)
                for op, arg in condition.items()
            ):
                return False
        elif not _matches_value(value, condition, case_insensitive):
            return False
    return True


def _project(document: dict[str, Any], projection: Any) -> dict[str, Any]:
    projection = normalize_projection(projection)
    if projection is None:
        return document

    include_id = bool(projection.get("_id", 1))
    fields = {k: bool(v) for k, v in projection.items() if k != "_id"}
    if any(fields.values()):
        projected = {k: document[k] for k in fields if fields[k] and k in document}
    else:
        projected = {k: v for k, v in document.items() if fields.get(k, True)}
        projected.pop("_id", None)
    if include_id and "_id" in document:
        projected = {"_id": document["_id"], **projected}
    return projected


class InMemoryQueryExecutor(QueryExecutor):
    """In-memory QueryExecutor over a list of dict documents, for tests."""

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        self._documents: list[dict[str, Any]] = list(documents or [])
        self.calls: list[ExecutorCall] = []

    def insert(self, *documents: dict[str, Any]) -> None:
        """Add documents to the collection."""
        self._documents.extend(documents)

    async def count(self, filter: Mapping[str, Any]) -> int:
        self.calls.append(ExecutorCall("count", dict(filter)))
        return sum(1 for doc in self._documents if matches(doc, filter))

    async def find(self, filter: Mapping[str, Any], options: FindOptions) -> list[Any]:
        self.calls.append(ExecutorCall("find", dict(filter), options))
        collation = options.collation or {}
        case_insensitive = "locale" in collation and collation.get("strength", 3) <= 2

        docs = [doc for doc in self._documents if matches(doc, filter, case_insensitive)]
        for field, direction in reversed(normalize_sort(options.sort)):
            docs.sort(
                key=cmp_to_key(
                    lambda a, b, f=field: _compare(
                        _get_path(a, f), _get_path(b, f), case_insensitive
                    )
                ),
                reverse=direction < 0,
            )

        end = None if options.limit is None else options.skip + options.limit
        return [
            _project(copy.deepcopy(doc), options.projection)
            for doc in docs[options.skip : end]
        ]
