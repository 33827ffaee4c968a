"""Delivery API payload parser.

Converts raw JSON mappings into `Entry`, `Asset`, `ContentType`, `Space` and
`SyncResult` objects. Link objects anywhere in a field tree become `Link`
placeholders; resolution happens later in `ContentKit.delivery.resolver`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from dateutil import parser as dt_parser

from ContentKit.core.models import (
    Asset,
    ContentType,
    ContentTypeField,
    Entry,
    Link,
    LinkType,
    Locale,
    Space,
    SyncResult,
    SystemProperties,
)
from ContentKit.errors import MalformedResponseError

Resource = Entry | Asset | ContentType


def parse_resource(raw: Any) -> Resource:
    """Parse one item by its ``sys.type``.

    Raises:
        MalformedResponseError: If the item is not a mapping, lacks ``sys.id``
            or has an unsupported type.
    """
    sys = parse_sys(raw)
    if sys.type == "Entry":
        return _build_entry(raw, sys)
    if sys.type == "Asset":
        return _build_asset(raw, sys)
    if sys.type == "ContentType":
        return _build_content_type(raw, sys)
    raise MalformedResponseError(f"Unsupported item type: {sys.type}")


def parse_entry(raw: Any) -> Entry:
    """Parse an entry mapping."""
    sys = parse_sys(raw)
    if sys.type != "Entry":
        raise MalformedResponseError(f"Expected Entry, got {sys.type}")
    return _build_entry(raw, sys)


def parse_asset(raw: Any) -> Asset:
    """Parse an asset mapping."""
    sys = parse_sys(raw)
    if sys.type != "Asset":
        raise MalformedResponseError(f"Expected Asset, got {sys.type}")
    return _build_asset(raw, sys)


def parse_content_type(raw: Any) -> ContentType:
    """Parse a content type mapping."""
    sys = parse_sys(raw)
    if sys.type != "ContentType":
        raise MalformedResponseError(f"Expected ContentType, got {sys.type}")
    return _build_content_type(raw, sys)


def parse_sys(raw: Any) -> SystemProperties:
    """Parse the ``sys`` block shared by all resources."""
    if not isinstance(raw, Mapping):
        raise MalformedResponseError(f"Resource must be an object, got {type(raw).__name__}")
    sys = raw.get("sys")
    if not isinstance(sys, Mapping):
        raise MalformedResponseError("Resource is missing 'sys'")
    resource_id = sys.get("id")
    resource_type = sys.get("type")
    if not isinstance(resource_id, str) or not resource_id:
        raise MalformedResponseError("Resource is missing 'sys.id'")
    if not isinstance(resource_type, str) or not resource_type:
        raise MalformedResponseError(f"Resource {resource_id} is missing 'sys.type'")

    revision = sys.get("revision")
    locale = sys.get("locale")
    return SystemProperties(
        id=resource_id,
        type=resource_type,
        created_at=_parse_datetime(sys.get("createdAt")),
        updated_at=_parse_datetime(sys.get("updatedAt")),
        revision=revision if isinstance(revision, int) and not isinstance(revision, bool) else None,
        locale=locale if isinstance(locale, str) and locale else None,
        content_type_id=_link_id(sys.get("contentType")),
    )


def parse_value(value: Any) -> Any:
    """Convert a raw field value, turning link objects into `Link`."""
    link = as_link(value)
    if link is not None:
        return link
    if isinstance(value, Mapping):
        return {key: parse_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [parse_value(item) for item in value]
    return value


def as_link(value: Any) -> Link | None:
    """Return a `Link` if ``value`` is a link object, else None."""
    if not isinstance(value, Mapping):
        return None
    sys = value.get("sys")
    if not isinstance(sys, Mapping) or sys.get("type") != "Link":
        return None
    try:
        link_type = LinkType(sys.get("linkType"))
    except ValueError:
        return None
    target_id = sys.get("id")
    if not isinstance(target_id, str) or not target_id:
        return None
    return Link(target_type=link_type, target_id=target_id)


def parse_space(raw: Any) -> Space:
    """Parse a space payload."""
    sys = parse_sys(raw)
    locales_raw = raw.get("locales")
    locales: list[Locale] = []
    if isinstance(locales_raw, list):
        for item in locales_raw:
            if not isinstance(item, Mapping) or not isinstance(item.get("code"), str):
                continue
            locales.append(
                Locale(
                    code=item["code"],
                    name=_safe_str(item.get("name")) or item["code"],
                    default=item.get("default") is True,
                    fallback_code=item.get("fallbackCode") if isinstance(item.get("fallbackCode"), str) else None,
                )
            )
    return Space(id=sys.id, name=_safe_str(raw.get("name")), locales=tuple(locales))


def parse_sync(raw: Any) -> SyncResult:
    """Parse a sync payload into entries, assets and deletions."""
    if not isinstance(raw, Mapping):
        raise MalformedResponseError("Sync response must be an object")
    items = raw.get("items")
    if not isinstance(items, list):
        raise MalformedResponseError("Sync response is missing 'items'")

    entries: list[Entry] = []
    assets: list[Asset] = []
    deleted_entries: list[str] = []
    deleted_assets: list[str] = []
    for item in items:
        sys = parse_sys(item)
        if sys.type == "Entry":
            entries.append(_build_entry(item, sys))
        elif sys.type == "Asset":
            assets.append(_build_asset(item, sys))
        elif sys.type == "DeletedEntry":
            deleted_entries.append(sys.id)
        elif sys.type == "DeletedAsset":
            deleted_assets.append(sys.id)

    next_sync_url = _safe_str(raw.get("nextSyncUrl")) or None
    next_page_url = _safe_str(raw.get("nextPageUrl")) or None
    if next_sync_url is None and next_page_url is None:
        raise MalformedResponseError("Sync response has neither 'nextSyncUrl' nor 'nextPageUrl'")
    return SyncResult(
        entries=tuple(entries),
        assets=tuple(assets),
        deleted_entry_ids=tuple(deleted_entries),
        deleted_asset_ids=tuple(deleted_assets),
        next_sync_url=next_sync_url,
        next_page_url=next_page_url,
    )


def _build_entry(raw: Mapping[str, Any], sys: SystemProperties) -> Entry:
    return Entry(sys=sys, fields=_parse_fields(raw, sys))


def _build_asset(raw: Mapping[str, Any], sys: SystemProperties) -> Asset:
    return Asset(sys=sys, fields=_parse_fields(raw, sys))


def _build_content_type(raw: Mapping[str, Any], sys: SystemProperties) -> ContentType:
    fields: list[ContentTypeField] = []
    raw_fields = raw.get("fields")
    if isinstance(raw_fields, list):
        for item in raw_fields:
            if not isinstance(item, Mapping) or not isinstance(item.get("id"), str):
                continue
            fields.append(
                ContentTypeField(
                    id=item["id"],
                    name=_safe_str(item.get("name")) or item["id"],
                    type=_safe_str(item.get("type")),
                    localized=item.get("localized") is True,
                    required=item.get("required") is True,
                    disabled=item.get("disabled") is True,
                    link_type=_safe_str(item.get("linkType")) or None,
                )
            )
    return ContentType(
        sys=sys,
        name=_safe_str(raw.get("name")),
        description=_safe_str(raw.get("description")) or None,
        display_field=_safe_str(raw.get("displayField")) or None,
        fields=tuple(fields),
    )


def _parse_fields(raw: Mapping[str, Any], sys: SystemProperties) -> dict[str, Any]:
    fields = raw.get("fields", {})
    if fields is None:
        return {}
    if not isinstance(fields, Mapping):
        raise MalformedResponseError(f"{sys.type} {sys.id} has non-object 'fields'")
    return {str(name): parse_value(value) for name, value in fields.items()}


def _link_id(value: Any) -> str | None:
    """Return the target id of a link object."""
    if not isinstance(value, Mapping):
        return None
    sys = value.get("sys")
    if not isinstance(sys, Mapping):
        return None
    target_id = sys.get("id")
    return target_id if isinstance(target_id, str) and target_id else None


def _parse_datetime(raw_value: Any) -> datetime | None:
    """Parse ISO datetime text into timezone-aware datetime."""
    if not isinstance(raw_value, str) or not raw_value:
        return None
    try:
        parsed = dt_parser.isoparse(raw_value)
    except (TypeError, ValueError):
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _safe_str(value: Any) -> str:
    """Convert scalar value to stripped string."""
    if isinstance(value, str):
        return value.strip()
    return ""
