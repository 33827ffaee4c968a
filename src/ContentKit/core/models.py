from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

_MISSING = object()


class LinkType(Enum):
    """Kinds of resources a link can point to."""

    ENTRY = "Entry"
    ASSET = "Asset"


class SyncType(Enum):
    """Resource filter for the sync endpoint."""

    ALL = "all"
    ASSET = "Asset"
    ENTRY = "Entry"
    DELETION = "Deletion"
    DELETED_ASSET = "DeletedAsset"
    DELETED_ENTRY = "DeletedEntry"


@dataclass(frozen=True, slots=True)
class Link:
    """Reference to another entry or asset.

    Appears in place of a field value in raw payloads, and stays in resolved
    output whenever the target could not be substituted (too deep, cyclic, or
    missing from the include side-table).
    """

    target_type: LinkType
    target_id: str

    @property
    def key(self) -> tuple[str, str]:
        """Identity used for lookups and cycle detection."""
        return self.target_type.value, self.target_id


@dataclass(frozen=True, slots=True)
class SystemProperties:
    """Common ``sys`` metadata of a resource.

    Attributes:
        id: Resource identifier.
        type: Resource type (``Entry``, ``Asset``, ``ContentType`` ...).
        created_at: Creation time if provided.
        updated_at: Last update time if provided.
        revision: Published revision if provided.
        locale: Locale of the field values; None when all locales are present.
        content_type_id: Content type of an entry.
    """

    id: str
    type: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    revision: Optional[int] = None
    locale: Optional[str] = None
    content_type_id: Optional[str] = None


class _FieldAccess:
    """Typed accessors over a ``fields`` mapping.

    Field values are plain Python values: str, int/float, bool, dict, list,
    `Link`, `Entry` or `Asset`. Each accessor returns ``default`` when the
    field is absent and raises TypeError when the value has another type.
    """

    __slots__ = ()

    fields: Mapping[str, Any]

    def get(self, name: str, default: Any = None) -> Any:
        """Return a raw field value."""
        return self.fields.get(name, default)

    def get_text(self, name: str, default: str | None = None) -> str | None:
        return self._typed(name, (str,), "text", default)

    def get_number(self, name: str, default: float | None = None) -> int | float | None:
        value = self.fields.get(name, _MISSING)
        if value is _MISSING or value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Field '{name}' is not a number: {type(value).__name__}")
        return value

    def get_bool(self, name: str, default: bool | None = None) -> bool | None:
        return self._typed(name, (bool,), "boolean", default)

    def get_list(self, name: str, default: Sequence[Any] | None = None) -> Sequence[Any] | None:
        return self._typed(name, (list, tuple), "list", default)

    def get_object(self, name: str, default: Mapping[str, Any] | None = None) -> Mapping[str, Any] | None:
        return self._typed(name, (Mapping,), "object", default)

    def get_link(self, name: str) -> Link | None:
        """Return an unresolved link, or None when the field is absent."""
        return self._typed(name, (Link,), "link", None)

    def get_entry(self, name: str) -> Entry | None:
        """Return a resolved linked entry, or None when the field is absent."""
        return self._typed(name, (Entry,), "entry", None)

    def get_asset(self, name: str) -> Asset | None:
        """Return a resolved linked asset, or None when the field is absent."""
        return self._typed(name, (Asset,), "asset", None)

    def _typed(self, name: str, types: tuple[type, ...], label: str, default: Any) -> Any:
        value = self.fields.get(name, _MISSING)
        if value is _MISSING or value is None:
            return default
        if not isinstance(value, types):
            raise TypeError(f"Field '{name}' is not a {label}: {type(value).__name__}")
        return value


def _project_locale(
    fields: Mapping[str, Any], locale: str, fallback: str | None, memo: dict[int, Any]
) -> dict[str, Any]:
    """Pick one locale out of ``{field: {locale: value}}`` mappings."""
    projected: dict[str, Any] = {}
    for name, per_locale in fields.items():
        if not isinstance(per_locale, Mapping):
            projected[name] = _project_value(per_locale, locale, fallback, memo)
            continue
        if locale in per_locale:
            value = per_locale[locale]
        elif fallback is not None and fallback in per_locale:
            value = per_locale[fallback]
        else:
            continue
        projected[name] = _project_value(value, locale, fallback, memo)
    return projected


def _project_value(value: Any, locale: str, fallback: str | None, memo: dict[int, Any]) -> Any:
    """Project resolved entries and assets nested inside a field value."""
    if isinstance(value, (Entry, Asset)):
        return _project_resource(value, locale, fallback, memo)
    if isinstance(value, Mapping):
        return {key: _project_value(item, locale, fallback, memo) for key, item in value.items()}
    if isinstance(value, list):
        return [_project_value(item, locale, fallback, memo) for item in value]
    return value


def _project_resource(resource: Any, locale: str, fallback: str | None, memo: dict[int, Any]) -> Any:
    # A resolved entry shared by several links is projected once.
    if resource.sys.locale is not None:
        return resource
    projected = memo.get(id(resource))
    if projected is None:
        projected = replace(
            resource,
            sys=replace(resource.sys, locale=locale),
            fields=_project_locale(resource.fields, locale, fallback, memo),
        )
        memo[id(resource)] = projected
    return projected


@dataclass(frozen=True, slots=True)
class Entry(_FieldAccess):
    """A structured content object.

    Attributes:
        sys: System metadata.
        fields: Read-only mapping of field name to value.
    """

    sys: SystemProperties
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def content_type_id(self) -> str | None:
        return self.sys.content_type_id

    def in_locale(self, locale: str, fallback: str | None = None) -> Entry:
        """Project an all-locales entry (``locale=*``) to one locale.

        Entries fetched for a single locale are returned unchanged. Fields
        missing in both ``locale`` and ``fallback`` are dropped. Linked
        entries and assets that were already resolved are projected too.
        """
        return _project_resource(self, locale, fallback, {})


@dataclass(frozen=True, slots=True)
class AssetFile:
    """Binary file metadata of an asset."""

    url: str
    file_name: str | None = None
    content_type: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def size(self) -> int | None:
        size = self.details.get("size")
        return size if isinstance(size, int) and not isinstance(size, bool) else None


@dataclass(frozen=True, slots=True)
class Asset(_FieldAccess):
    """A media object with title, description and file."""

    sys: SystemProperties
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def title(self) -> str | None:
        return self.get_text("title")

    @property
    def description(self) -> str | None:
        return self.get_text("description")

    @property
    def file(self) -> AssetFile | None:
        raw = self.get_object("file")
        if raw is None or not isinstance(raw.get("url"), str):
            return None
        details = raw.get("details")
        return AssetFile(
            url=raw["url"],
            file_name=raw.get("fileName"),
            content_type=raw.get("contentType"),
            details=details if isinstance(details, Mapping) else {},
        )

    def in_locale(self, locale: str, fallback: str | None = None) -> Asset:
        """Project an all-locales asset to one locale."""
        return _project_resource(self, locale, fallback, {})


@dataclass(frozen=True, slots=True)
class ContentTypeField:
    """Field definition of a content type."""

    id: str
    name: str
    type: str
    localized: bool = False
    required: bool = False
    disabled: bool = False
    link_type: str | None = None


@dataclass(frozen=True, slots=True)
class ContentType:
    """Schema of an entry type."""

    sys: SystemProperties
    name: str
    description: str | None = None
    display_field: str | None = None
    fields: Sequence[ContentTypeField] = ()

    @property
    def id(self) -> str:
        return self.sys.id


@dataclass(frozen=True, slots=True)
class Locale:
    """A locale enabled in a space."""

    code: str
    name: str
    default: bool = False
    fallback_code: str | None = None


@dataclass(frozen=True, slots=True)
class Space:
    """Space metadata."""

    id: str
    name: str
    locales: Sequence[Locale] = ()

    @property
    def default_locale(self) -> Locale | None:
        for locale in self.locales:
            if locale.default:
                return locale
        return None


@dataclass(frozen=True, slots=True)
class SyncResult:
    """One page of sync results.

    Exactly one of ``next_sync_url`` (sync complete, use it for the next
    delta) and ``next_page_url`` (more pages pending) is set.
    """

    entries: Sequence[Entry] = ()
    assets: Sequence[Asset] = ()
    deleted_entry_ids: Sequence[str] = ()
    deleted_asset_ids: Sequence[str] = ()
    next_sync_url: str | None = None
    next_page_url: str | None = None
