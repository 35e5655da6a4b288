"""docpaginate: page-based pagination over document collections."""

from .config import PaginateSettings, load_settings
from .exceptions import PaginateError, PaginateErrorCodes
from .executor import FindOptions, QueryExecutor, normalize_projection, normalize_sort
from .labels import CANONICAL_FIELDS, DEFAULT_LABELS, apply_labels
from .memory import InMemoryQueryExecutor
from .mongo import MotorQueryExecutor
from .options import PaginateOptions, ResolvedOptions, resolve_options
from .page import Page, PaginationMeta, compute_meta
from .paginator import Paginator, paginate, plugin

__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_LABELS",
    "FindOptions",
    "InMemoryQueryExecutor",
    "MotorQueryExecutor",
    "Page",
    "PaginateError",
    "PaginateErrorCodes",
    "PaginateOptions",
    "PaginateSettings",
    "PaginationMeta",
    "Paginator",
    "QueryExecutor",
    "ResolvedOptions",
    "apply_labels",
    "compute_meta",
    "load_settings",
    "normalize_projection",
    "normalize_sort",
    "paginate",
    "plugin",
    "resolve_options",
]
