"""Query construction for the delivery API."""

from __future__ import annotations

from ContentKit.query.builder import DEFAULT_INCLUDE, MAX_INCLUDE, MAX_LIMIT, QueryBuilder, QueryState
from ContentKit.query.filters import Filter, FilterOp, MimeTypeRestriction
from ContentKit.query.parse import parse_filter, parse_filters, parse_query_string
from ContentKit.query.sort import SortField, SortOrder, SortOrderBuilder, SortSpec

__all__ = [
    "DEFAULT_INCLUDE",
    "MAX_INCLUDE",
    "MAX_LIMIT",
    "Filter",
    "FilterOp",
    "MimeTypeRestriction",
    "QueryBuilder",
    "QueryState",
    "SortField",
    "SortOrder",
    "SortOrderBuilder",
    "SortSpec",
    "parse_filter",
    "parse_filters",
    "parse_query_string",
]
