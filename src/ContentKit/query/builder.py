"""Fluent query builder for the delivery API.

Every mutator returns a new `QueryBuilder`; the receiver is never modified.
A builder can therefore be kept as a template and extended in several
directions, and it can be shared between threads.

Serialization order is fixed for determinism:
``content_type``, filters (insertion order), ``order``, ``skip``, ``limit``,
``include``, ``locale``. Unset parameters are omitted.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable
from urllib.parse import quote

from ContentKit.errors import ValidationError
from ContentKit.query.filters import (
    FULL_TEXT_KEY,
    MIME_TYPE_KEY,
    Filter,
    FilterOp,
    MimeTypeRestriction,
)
from ContentKit.query.sort import SortField, SortOrder, SortSpec

MAX_LIMIT = 1000
MAX_INCLUDE = 10
DEFAULT_INCLUDE = 1

_KEY_SAFE = ".[]_-"
_VALUE_SAFE = ".,-_:*"


@dataclass(frozen=True, slots=True)
class QueryState:
    """Accumulated query parameters.

    Attributes:
        content_type: Content type id constraint (at most one).
        filters: Conjunctive filters in insertion order.
        sort: Sort specification.
        limit: Page size; None uses the server default.
        skip: Offset; None means 0.
        include: Link include depth; None uses the platform default (1).
        locale: Locale code; None uses the space default locale.
    """

    content_type: str | None = None
    filters: tuple[Filter, ...] = ()
    sort: SortSpec = SortSpec()
    limit: int | None = None
    skip: int | None = None
    include: int | None = None
    locale: str | None = None


class QueryBuilder:
    """Immutable, chainable builder of delivery query strings.

    Example:
        >>> QueryBuilder().content_type_is("cat").field_equals("fields.color", "rainbow").to_query_string()
        'content_type=cat&fields.color=rainbow'
    """

    __slots__ = ("_state",)

    def __init__(self, state: QueryState | None = None) -> None:
        self._state = state or QueryState()

    @classmethod
    def new(cls) -> QueryBuilder:
        """Return an empty builder."""
        return cls()

    @property
    def state(self) -> QueryState:
        """Current immutable query state."""
        return self._state

    @property
    def include_depth(self) -> int:
        """Include depth the server will apply for this query."""
        return DEFAULT_INCLUDE if self._state.include is None else self._state.include

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryBuilder):
            return NotImplemented
        return self._state == other._state

    def __hash__(self) -> int:
        return hash(self._state)

    def __repr__(self) -> str:
        return f"QueryBuilder({self.to_query_string()!r})"

    def _with(self, **changes: Any) -> QueryBuilder:
        return QueryBuilder(replace(self._state, **changes))

    def _add(self, flt: Filter) -> QueryBuilder:
        return self._with(filters=self._state.filters + (flt,))

    # --- constraints -------------------------------------------------------

    def content_type_is(self, content_type_id: str) -> QueryBuilder:
        """Restrict results to one content type, replacing any previous one."""
        if not isinstance(content_type_id, str) or not content_type_id.strip():
            raise ValidationError("content type id must be a non-empty string")
        return self._with(content_type=content_type_id.strip())

    def where(self, flt: Filter) -> QueryBuilder:
        """Append a prebuilt filter."""
        if not isinstance(flt, Filter):
            raise ValidationError(f"where() expects a Filter, got {type(flt).__name__}")
        return self._add(flt)

    def field_equals(self, field: str, value: Any) -> QueryBuilder:
        """Field equals ``value``."""
        return self._add(Filter.create(field, FilterOp.EQUALS, value))

    def field_does_not_equal(self, field: str, value: Any) -> QueryBuilder:
        """Field differs from ``value``."""
        return self._add(Filter.create(field, FilterOp.NOT_EQUALS, value))

    def field_includes(self, field: str, values: Iterable[Any]) -> QueryBuilder:
        """Field equals any of ``values``."""
        return self._add(Filter.create(field, FilterOp.INCLUDES, _as_collection(values)))

    def field_excludes(self, field: str, values: Iterable[Any]) -> QueryBuilder:
        """Field equals none of ``values``."""
        return self._add(Filter.create(field, FilterOp.EXCLUDES, _as_collection(values)))

    def field_exists(self, field: str, must_exist: bool = True) -> QueryBuilder:
        """Field is (or is not) present."""
        return self._add(Filter.create(field, FilterOp.EXISTS, must_exist))

    def field_matches(self, field: str, text: str) -> QueryBuilder:
        """Full-text match restricted to one field."""
        return self._add(Filter.create(field, FilterOp.MATCH, text))

    def field_less_than_or_equal_to(self, field: str, value: Any) -> QueryBuilder:
        """Field is less than or equal to ``value``."""
        return self._add(Filter.create(field, FilterOp.LTE, value))

    def field_greater_than_or_equal_to(self, field: str, value: Any) -> QueryBuilder:
        """Field is greater than or equal to ``value``."""
        return self._add(Filter.create(field, FilterOp.GTE, value))

    def full_text_search(self, text: str) -> QueryBuilder:
        """Full-text search across all fields."""
        return self._add(Filter.create(FULL_TEXT_KEY, FilterOp.FULL_TEXT, text))

    def in_proximity_of(self, field: str, lat: float, lon: float) -> QueryBuilder:
        """Order by distance from a location field to ``(lat, lon)``."""
        return self._add(Filter.create(field, FilterOp.NEAR, (lat, lon)))

    def within_area(self, field: str, lat1: float, lon1: float, lat2: float, lon2: float) -> QueryBuilder:
        """Location field lies in the box spanned by two corners."""
        return self._add(Filter.create(field, FilterOp.WITHIN_AREA, (lat1, lon1, lat2, lon2)))

    def within_radius(self, field: str, lat: float, lon: float, radius_km: float) -> QueryBuilder:
        """Location field lies within ``radius_km`` of ``(lat, lon)``."""
        return self._add(Filter.create(field, FilterOp.WITHIN_RADIUS, (lat, lon, radius_km)))

    def mime_type_is(self, restriction: MimeTypeRestriction | str) -> QueryBuilder:
        """Restrict assets to a MIME type group."""
        if isinstance(restriction, str):
            try:
                restriction = MimeTypeRestriction(restriction.strip().lower())
            except ValueError:
                raise ValidationError(f"Unknown mime type group: {restriction}") from None
        if not isinstance(restriction, MimeTypeRestriction):
            raise ValidationError(f"Unknown mime type group: {restriction!r}")
        return self._add(Filter.create(MIME_TYPE_KEY, FilterOp.MIME_TYPE, restriction))

    # --- ordering and paging -----------------------------------------------

    def order_by(self, sort: SortSpec | SortField | str, order: SortOrder = SortOrder.ASCENDING) -> QueryBuilder:
        """Replace the sort specification.

        Args:
            sort: A full `SortSpec`, a single `SortField`, or a field path.
            order: Direction when ``sort`` is a field path.

        Returns:
            New builder with the sort replaced.
        """
        if isinstance(sort, SortSpec):
            spec = sort
        elif isinstance(sort, SortField):
            spec = SortSpec(fields=(sort,))
        elif isinstance(sort, str):
            spec = SortSpec(fields=(SortField(sort, order),))
        else:
            raise ValidationError(f"order_by() expects SortSpec, SortField or str, got {type(sort).__name__}")
        return self._with(sort=spec)

    def limit(self, limit: int) -> QueryBuilder:
        """Set the page size, between 1 and 1000."""
        _check_int(limit, "limit")
        if not 1 <= limit <= MAX_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")
        return self._with(limit=limit)

    def skip(self, skip: int) -> QueryBuilder:
        """Set the page offset."""
        _check_int(skip, "skip")
        if skip < 0:
            raise ValidationError(f"skip must be >= 0, got {skip}")
        return self._with(skip=skip)

    def include(self, depth: int) -> QueryBuilder:
        """Set how many link levels the server embeds, between 0 and 10."""
        _check_int(depth, "include")
        if not 0 <= depth <= MAX_INCLUDE:
            raise ValidationError(f"include must be between 0 and {MAX_INCLUDE}, got {depth}")
        return self._with(include=depth)

    def locale_is(self, locale: str) -> QueryBuilder:
        """Request one locale, or ``*`` for all locales."""
        if not isinstance(locale, str) or not locale.strip():
            raise ValidationError("locale must be a non-empty string")
        return self._with(locale=locale.strip())

    # --- serialization -----------------------------------------------------

    def to_params(self) -> list[tuple[str, str]]:
        """Return the ordered, unencoded ``(key, value)`` pairs."""
        state = self._state
        params: list[tuple[str, str]] = []
        if state.content_type is not None:
            params.append(("content_type", state.content_type))
        params.extend(flt.to_param() for flt in state.filters)
        if state.sort:
            params.append(("order", state.sort.to_param()))
        if state.skip is not None:
            params.append(("skip", str(state.skip)))
        if state.limit is not None:
            params.append(("limit", str(state.limit)))
        if state.include is not None:
            params.append(("include", str(state.include)))
        if state.locale is not None:
            params.append(("locale", state.locale))
        return params

    def to_query_string(self) -> str:
        """Return the percent-encoded query string without leading ``?``."""
        return "&".join(
            f"{quote(key, safe=_KEY_SAFE)}={quote(value, safe=_VALUE_SAFE)}" for key, value in self.to_params()
        )

    def __str__(self) -> str:
        return self.to_query_string()


def _as_collection(values: Any) -> Any:
    """Reject scalars where a collection of values is required."""
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ValidationError(f"Expected a collection of values, got {type(values).__name__}")
    if isinstance(values, (set, frozenset)):
        return values
    return tuple(values)


def _check_int(value: Any, name: str) -> None:
    """Validate an integer argument (bool is rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {type(value).__name__}")
