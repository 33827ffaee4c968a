"""Paginated collection responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, Mapping, Sequence, TypeVar

from ContentKit.core.models import Asset, Entry
from ContentKit.delivery.parser import parse_asset, parse_entry, parse_resource
from ContentKit.errors import MalformedResponseError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of a collection response.

    Attributes:
        items: Items in server order.
        total: Total number of matches across all pages.
        skip: Offset of this page.
        limit: Page size applied by the server, if reported.
        linked_assets: Included assets keyed by id.
        linked_entries: Included entries keyed by id.
        errors: Raw ``errors`` entries (e.g. unresolvable links).
    """

    items: Sequence[T]
    total: int
    skip: int = 0
    limit: int | None = None
    linked_assets: Mapping[str, Asset] = field(default_factory=dict)
    linked_entries: Mapping[str, Entry] = field(default_factory=dict)
    errors: Sequence[Mapping[str, Any]] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "linked_assets", MappingProxyType(dict(self.linked_assets)))
        object.__setattr__(self, "linked_entries", MappingProxyType(dict(self.linked_entries)))
        object.__setattr__(self, "errors", tuple(self.errors))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def has_more(self) -> bool:
        """Whether items exist beyond this page."""
        return self.skip + len(self.items) < self.total


def parse_page(payload: Any) -> Page[Any]:
    """Parse a collection payload.

    Args:
        payload: Decoded JSON mapping with ``total``, ``skip``, ``limit``,
            ``items`` and optional ``includes``.

    Returns:
        Page of parsed items with the include side-tables.

    Raises:
        MalformedResponseError: If ``items`` is absent, ``total`` is missing
            or negative, or the item count exceeds ``total`` / ``limit``.
    """
    if not isinstance(payload, Mapping):
        raise MalformedResponseError(f"Collection response must be an object, got {type(payload).__name__}")

    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raise MalformedResponseError("Collection response is missing 'items'")

    total = _non_negative_int(payload, "total", required=True)
    skip = _non_negative_int(payload, "skip", required=False)
    limit = _non_negative_int(payload, "limit", required=False)

    if len(raw_items) > total:
        raise MalformedResponseError(f"Collection has {len(raw_items)} items but total={total}")
    if limit and len(raw_items) > limit:
        raise MalformedResponseError(f"Collection has {len(raw_items)} items but limit={limit}")

    items = [parse_resource(item) for item in raw_items]
    linked_assets, linked_entries = _parse_includes(payload.get("includes"))

    errors = payload.get("errors")
    return Page(
        items=items,
        total=total,
        skip=skip or 0,
        limit=limit,
        linked_assets=linked_assets,
        linked_entries=linked_entries,
        errors=[error for error in errors if isinstance(error, Mapping)] if isinstance(errors, list) else (),
    )


def _parse_includes(includes: Any) -> tuple[dict[str, Asset], dict[str, Entry]]:
    """Build id-keyed side-tables from ``includes.Asset`` / ``includes.Entry``."""
    assets: dict[str, Asset] = {}
    entries: dict[str, Entry] = {}
    if includes is None:
        return assets, entries
    if not isinstance(includes, Mapping):
        raise MalformedResponseError("'includes' must be an object")

    raw_assets = includes.get("Asset") or []
    raw_entries = includes.get("Entry") or []
    if not isinstance(raw_assets, list) or not isinstance(raw_entries, list):
        raise MalformedResponseError("'includes.Asset' and 'includes.Entry' must be lists")

    for raw in raw_assets:
        asset = parse_asset(raw)
        assets[asset.id] = asset
    for raw in raw_entries:
        entry = parse_entry(raw)
        entries[entry.id] = entry
    return assets, entries


def _non_negative_int(payload: Mapping[str, Any], key: str, *, required: bool) -> int | None:
    """Read a non-negative integer field."""
    value = payload.get(key)
    if value is None:
        if required:
            raise MalformedResponseError(f"Collection response is missing '{key}'")
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResponseError(f"'{key}' must be an integer, got {type(value).__name__}")
    if value < 0:
        raise MalformedResponseError(f"'{key}' must be >= 0, got {value}")
    return value
