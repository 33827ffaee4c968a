"""Sort specifications for delivery queries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ContentKit.errors import ValidationError


class SortOrder(Enum):
    """Sort direction for one field."""

    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True, slots=True)
class SortField:
    """One ``(field, order)`` pair of a sort specification."""

    field: str
    order: SortOrder = SortOrder.ASCENDING

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field.strip():
            raise ValidationError("Sort field must be a non-empty string")
        if self.field.startswith("-"):
            raise ValidationError(f"Sort field must not carry a '-' prefix, use SortOrder.DESCENDING: {self.field}")
        if not isinstance(self.order, SortOrder):
            raise ValidationError(f"Unknown sort order: {self.order!r}")

    def to_token(self) -> str:
        """Return the ``order`` token, ``-`` prefixed when descending."""
        if self.order is SortOrder.DESCENDING:
            return f"-{self.field}"
        return self.field

    @classmethod
    def from_token(cls, token: str) -> SortField:
        """Parse one ``order`` token such as ``-sys.createdAt``."""
        token = token.strip()
        if token.startswith("-"):
            return cls(field=token[1:], order=SortOrder.DESCENDING)
        return cls(field=token)


@dataclass(frozen=True, slots=True)
class SortSpec:
    """Ordered sort keys; the first key has the highest precedence."""

    fields: tuple[SortField, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))

    def __bool__(self) -> bool:
        return bool(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def to_param(self) -> str:
        """Return the comma-joined ``order`` value."""
        return ",".join(item.to_token() for item in self.fields)

    @classmethod
    def parse(cls, text: str) -> SortSpec:
        """Parse a comma-joined ``order`` value."""
        tokens = [token for token in text.split(",") if token.strip()]
        return cls(fields=tuple(SortField.from_token(token) for token in tokens))


class SortOrderBuilder:
    """Compose a multi-key `SortSpec`.

    Example:
        >>> SortOrderBuilder("fields.name").then_by("sys.createdAt", SortOrder.DESCENDING).build().to_param()
        'fields.name,-sys.createdAt'
    """

    def __init__(self, field: str, order: SortOrder = SortOrder.ASCENDING) -> None:
        self._fields: list[SortField] = [SortField(field, order)]

    def then_by(self, field: str, order: SortOrder = SortOrder.ASCENDING) -> SortOrderBuilder:
        """Append a lower-precedence sort key."""
        self._fields.append(SortField(field, order))
        return self

    def build(self) -> SortSpec:
        """Return the composed specification."""
        return SortSpec(fields=tuple(self._fields))
