"""Filter expressions for the delivery query-string protocol.

A `Filter` is one field predicate. Every operator maps to a fixed key suffix:

- EQUALS           -> ``<field>``
- NOT_EQUALS       -> ``<field>[ne]``
- INCLUDES         -> ``<field>[in]``      (values comma-joined)
- EXCLUDES         -> ``<field>[nin]``     (values comma-joined)
- EXISTS           -> ``<field>[exists]``  (``true`` / ``false``)
- MATCH            -> ``<field>[match]``
- LTE / GTE        -> ``<field>[lte]`` / ``<field>[gte]``
- NEAR             -> ``<field>[near]``    (``lat,lon``)
- WITHIN_AREA      -> ``<field>[within]``  (``lat1,lon1,lat2,lon2``)
- WITHIN_RADIUS    -> ``<field>[within]``  (``lat,lon,radius``)
- FULL_TEXT        -> ``query``
- MIME_TYPE        -> ``mimetype_group``

`sys.*` and `fields.*` paths are treated the same way.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable

from ContentKit.errors import ValidationError

FULL_TEXT_KEY = "query"
MIME_TYPE_KEY = "mimetype_group"


class FilterOp(Enum):
    """Filter operators supported by the delivery API."""

    EQUALS = "eq"
    NOT_EQUALS = "ne"
    INCLUDES = "in"
    EXCLUDES = "nin"
    EXISTS = "exists"
    MATCH = "match"
    LTE = "lte"
    GTE = "gte"
    NEAR = "near"
    WITHIN_AREA = "within_area"
    WITHIN_RADIUS = "within_radius"
    FULL_TEXT = "query"
    MIME_TYPE = "mimetype_group"


class MimeTypeRestriction(Enum):
    """MIME type groups accepted by ``mimetype_group``."""

    ATTACHMENT = "attachment"
    PLAINTEXT = "plaintext"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    RICHTEXT = "richtext"
    PRESENTATION = "presentation"
    SPREADSHEET = "spreadsheet"
    PDF_DOCUMENT = "pdfdocument"
    ARCHIVE = "archive"
    CODE = "code"
    MARKUP = "markup"


_SUFFIX: dict[FilterOp, str] = {
    FilterOp.EQUALS: "",
    FilterOp.NOT_EQUALS: "[ne]",
    FilterOp.INCLUDES: "[in]",
    FilterOp.EXCLUDES: "[nin]",
    FilterOp.EXISTS: "[exists]",
    FilterOp.MATCH: "[match]",
    FilterOp.LTE: "[lte]",
    FilterOp.GTE: "[gte]",
    FilterOp.NEAR: "[near]",
    FilterOp.WITHIN_AREA: "[within]",
    FilterOp.WITHIN_RADIUS: "[within]",
}

# Exact value counts; None means "one or more".
_ARITY: dict[FilterOp, int | None] = {
    FilterOp.EQUALS: 1,
    FilterOp.NOT_EQUALS: 1,
    FilterOp.INCLUDES: None,
    FilterOp.EXCLUDES: None,
    FilterOp.EXISTS: 1,
    FilterOp.MATCH: 1,
    FilterOp.LTE: 1,
    FilterOp.GTE: 1,
    FilterOp.NEAR: 2,
    FilterOp.WITHIN_AREA: 4,
    FilterOp.WITHIN_RADIUS: 3,
    FilterOp.FULL_TEXT: 1,
    FilterOp.MIME_TYPE: 1,
}

_RESERVED_FIELD: dict[FilterOp, str] = {
    FilterOp.FULL_TEXT: FULL_TEXT_KEY,
    FilterOp.MIME_TYPE: MIME_TYPE_KEY,
}

_COORDINATE_OPS = frozenset({FilterOp.NEAR, FilterOp.WITHIN_AREA, FilterOp.WITHIN_RADIUS})
_LIST_OPS = frozenset({FilterOp.INCLUDES, FilterOp.EXCLUDES})
_TEXT_OPS = frozenset({FilterOp.FULL_TEXT, FilterOp.MATCH})


@dataclass(frozen=True, slots=True)
class Filter:
    """A single field predicate.

    Values are stored as their wire text so that two filters built from
    equivalent inputs compare equal, including filters recovered by parsing a
    query string.

    Attributes:
        field: Dotted field path (e.g. ``sys.id``, ``fields.color``).
        op: Filter operator.
        values: Operator values as strings.
    """

    field: str
    op: FilterOp
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field.strip():
            raise ValidationError("Filter field must be a non-empty string")
        if not isinstance(self.op, FilterOp):
            raise ValidationError(f"Unknown filter operator: {self.op!r}")

        reserved = _RESERVED_FIELD.get(self.op)
        if reserved is not None and self.field != reserved:
            raise ValidationError(f"Operator {self.op.name} requires field '{reserved}', got '{self.field}'")

        values = tuple(self.values)
        expected = _ARITY[self.op]
        if expected is None:
            if not values:
                raise ValidationError(f"Operator {self.op.name} on '{self.field}' requires at least one value")
        elif len(values) != expected:
            raise ValidationError(
                f"Operator {self.op.name} on '{self.field}' requires exactly {expected} value(s), got {len(values)}"
            )
        for value in values:
            if not isinstance(value, str):
                raise ValidationError(f"Filter values must be strings, got {type(value).__name__}")
        if self.op in _LIST_OPS and any("," in value for value in values):
            raise ValidationError(f"Operator {self.op.name} on '{self.field}' does not accept values containing ','")
        if self.op in _TEXT_OPS and not values[0].strip():
            raise ValidationError(f"Operator {self.op.name} on '{self.field}' requires non-blank text")
        if self.op is FilterOp.EXISTS and values[0] not in ("true", "false"):
            raise ValidationError(f"Operator EXISTS on '{self.field}' requires a boolean value")
        if self.op in _COORDINATE_OPS:
            _check_numeric(self.field, self.op, values)
        object.__setattr__(self, "values", values)

    @classmethod
    def create(cls, field: str, op: FilterOp, values: Any) -> Filter:
        """Build a filter from raw Python values.

        Scalars are wrapped into a one-tuple; lists, tuples and sets are
        expanded. Each value is converted to its wire text.

        Args:
            field: Dotted field path.
            op: Filter operator.
            values: Scalar or collection of values.

        Returns:
            A validated `Filter`.

        Raises:
            ValidationError: If the values do not fit the operator.
        """
        if isinstance(values, (list, tuple)):
            items: Iterable[Any] = values
        elif isinstance(values, (set, frozenset)):
            items = sorted(values, key=format_value)
        else:
            items = (values,)
        if op is FilterOp.EXISTS:
            items = tuple(items)
            if len(items) != 1 or not isinstance(items[0], bool):
                raise ValidationError(f"Operator EXISTS on '{field}' requires a single boolean value")
        return cls(field=field, op=op, values=tuple(format_value(v) for v in items))

    @property
    def key(self) -> str:
        """Query-string key for this filter."""
        reserved = _RESERVED_FIELD.get(self.op)
        if reserved is not None:
            return reserved
        return f"{self.field}{_SUFFIX[self.op]}"

    @property
    def value(self) -> str:
        """Query-string value for this filter."""
        return ",".join(self.values)

    def to_param(self) -> tuple[str, str]:
        """Return the unencoded ``(key, value)`` pair."""
        return self.key, self.value


def format_value(value: Any) -> str:
    """Convert a Python value to its query-string text.

    Strings are kept exactly as given, surrounding whitespace included.

    Args:
        value: Value supplied by the caller.

    Returns:
        Wire text of the value.

    Raises:
        ValidationError: If the value type is not supported.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return repr(value) if isinstance(value, float) else str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value is None:
        raise ValidationError("Filter value must not be None")
    raise ValidationError(f"Unsupported filter value type: {type(value).__name__}")


def _check_numeric(field: str, op: FilterOp, values: tuple[str, ...]) -> None:
    """Validate that coordinate operator values are finite numbers."""
    for value in values:
        try:
            number = float(value)
        except ValueError:
            raise ValidationError(f"Operator {op.name} on '{field}' requires numeric values, got '{value}'") from None
        if not math.isfinite(number):
            raise ValidationError(f"Operator {op.name} on '{field}' requires finite values, got '{value}'")
