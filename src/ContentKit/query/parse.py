"""Parse delivery query strings back into builder state."""

from __future__ import annotations

import re
from urllib.parse import parse_qsl

from ContentKit.errors import ValidationError
from ContentKit.query.builder import QueryBuilder
from ContentKit.query.filters import FULL_TEXT_KEY, MIME_TYPE_KEY, Filter, FilterOp
from ContentKit.query.sort import SortSpec

_KEY_RE = re.compile(r"^(?P<field>[^\[\]]+)(?:\[(?P<op>[a-z_]+)\])?$")

_SUFFIX_TO_OP: dict[str, FilterOp] = {
    "ne": FilterOp.NOT_EQUALS,
    "in": FilterOp.INCLUDES,
    "nin": FilterOp.EXCLUDES,
    "exists": FilterOp.EXISTS,
    "match": FilterOp.MATCH,
    "lte": FilterOp.LTE,
    "gte": FilterOp.GTE,
    "near": FilterOp.NEAR,
}

_LIST_OPS = frozenset({FilterOp.INCLUDES, FilterOp.EXCLUDES})
_PAGING_KEYS = ("skip", "limit", "include")


def parse_query_string(text: str) -> QueryBuilder:
    """Rebuild a `QueryBuilder` from a query string.

    Args:
        text: Query string, with or without a leading ``?``.

    Returns:
        Builder whose serialization is equivalent to ``text``.

    Raises:
        ValidationError: If a key uses an unsupported operator or a value is
            invalid for its parameter.
    """
    builder = QueryBuilder()
    for key, value in _pairs(text):
        if key == "content_type":
            builder = builder.content_type_is(value)
        elif key == "order":
            builder = builder.order_by(SortSpec.parse(value))
        elif key in _PAGING_KEYS:
            builder = getattr(builder, key)(_parse_int(key, value))
        elif key == "locale":
            builder = builder.locale_is(value)
        else:
            builder = builder.where(parse_filter(key, value))
    return builder


def parse_filters(text: str) -> tuple[Filter, ...]:
    """Return only the filters encoded in a query string."""
    return parse_query_string(text).state.filters


def parse_filter(key: str, value: str) -> Filter:
    """Parse one decoded ``key=value`` pair into a `Filter`.

    Args:
        key: Decoded parameter key such as ``fields.color[ne]``.
        value: Decoded parameter value.

    Returns:
        The corresponding filter.

    Raises:
        ValidationError: If the key is malformed or the operator unknown.
    """
    if key == FULL_TEXT_KEY:
        return Filter(field=FULL_TEXT_KEY, op=FilterOp.FULL_TEXT, values=(value,))
    if key == MIME_TYPE_KEY:
        return Filter(field=MIME_TYPE_KEY, op=FilterOp.MIME_TYPE, values=(value,))

    match = _KEY_RE.match(key)
    if match is None:
        raise ValidationError(f"Malformed query parameter key: {key}")
    field = match.group("field")
    suffix = match.group("op")

    if suffix is None:
        return Filter(field=field, op=FilterOp.EQUALS, values=(value,))
    if suffix == "within":
        parts = _split(value, strip=True)
        op = FilterOp.WITHIN_RADIUS if len(parts) == 3 else FilterOp.WITHIN_AREA
        return Filter(field=field, op=op, values=parts)

    op = _SUFFIX_TO_OP.get(suffix)
    if op is None:
        raise ValidationError(f"Unsupported filter operator [{suffix}] in key: {key}")
    if op is FilterOp.NEAR:
        values = _split(value, strip=True)
    elif op in _LIST_OPS:
        values = _split(value, strip=False)
    else:
        values = (value,)
    return Filter(field=field, op=op, values=values)


def _pairs(text: str) -> list[tuple[str, str]]:
    """Decode a query string into ordered pairs."""
    body = (text or "").strip()
    if body.startswith("?"):
        body = body[1:]
    return parse_qsl(body, keep_blank_values=True)


def _split(value: str, *, strip: bool) -> tuple[str, ...]:
    """Split a comma-joined value; coordinates are also stripped."""
    parts = value.split(",")
    return tuple(part.strip() for part in parts) if strip else tuple(parts)


def _parse_int(key: str, value: str) -> int:
    """Parse an integer paging parameter."""
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{key} must be an integer, got '{value}'") from None
