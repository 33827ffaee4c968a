"""JSON output renderers.

Turns pages and resources back into JSON-serializable objects. Resolved
links are rendered inline; unresolved links keep the wire link shape.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Mapping

from ContentKit.core.models import Asset, ContentType, Entry, Link, SystemProperties
from ContentKit.delivery.page import Page


def render_page(page: Page[Any]) -> dict[str, Any]:
    """Render a page with paging metadata and items."""
    out: dict[str, Any] = {
        "total": page.total,
        "skip": page.skip,
        "limit": page.limit,
        "items": [render_value(item) for item in page.items],
    }
    if page.errors:
        out["errors"] = [dict(error) for error in page.errors]
    return out


def render_value(value: Any) -> Any:
    """Render a field value or resource recursively."""
    if isinstance(value, (Entry, Asset)):
        return {"sys": _render_sys(value.sys), "fields": render_value(value.fields)}
    if isinstance(value, ContentType):
        return {
            "sys": _render_sys(value.sys),
            "name": value.name,
            "description": value.description,
            "displayField": value.display_field,
            "fields": [
                {
                    "id": f.id,
                    "name": f.name,
                    "type": f.type,
                    "localized": f.localized,
                    "required": f.required,
                    "disabled": f.disabled,
                    **({"linkType": f.link_type} if f.link_type else {}),
                }
                for f in value.fields
            ],
        }
    if isinstance(value, Link):
        return {"sys": {"type": "Link", "linkType": value.target_type.value, "id": value.target_id}}
    if isinstance(value, Mapping):
        return {str(key): render_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [render_value(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def dumps(value: Any) -> str:
    """Render and encode as indented JSON text."""
    if isinstance(value, Page):
        value = render_page(value)
    else:
        value = render_value(value)
    return json.dumps(value, ensure_ascii=False, indent=2)


def _render_sys(sys: SystemProperties) -> dict[str, Any]:
    out: dict[str, Any] = {"id": sys.id, "type": sys.type}
    if sys.created_at is not None:
        out["createdAt"] = sys.created_at.isoformat()
    if sys.updated_at is not None:
        out["updatedAt"] = sys.updated_at.isoformat()
    if sys.revision is not None:
        out["revision"] = sys.revision
    if sys.locale is not None:
        out["locale"] = sys.locale
    if sys.content_type_id is not None:
        out["contentType"] = {"sys": {"type": "Link", "linkType": "ContentType", "id": sys.content_type_id}}
    return out
