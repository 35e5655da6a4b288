"""docpaginate exception types."""

from __future__ import annotations


class PaginateError(Exception):
    """Base error for the docpaginate library.

    Executor failures are never wrapped in this type; they reach the caller
    unchanged.
    """

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class PaginateErrorCodes:
    """PaginateError code constants."""

    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"
