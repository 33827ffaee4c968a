"""Delivery service composing query building, fetching, parsing and resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

from ContentKit.core.models import Asset, ContentType, Entry, Space, SyncResult, SyncType
from ContentKit.delivery.page import Page, parse_page
from ContentKit.delivery.parser import parse_asset, parse_content_type, parse_space, parse_sync
from ContentKit.delivery.resolver import resolve_page
from ContentKit.errors import MalformedResponseError, ResourceNotFoundError, ValidationError
from ContentKit.query.builder import QueryBuilder
from ContentKit.utils.log import log


class Transport(Protocol):
    """What the service needs from an HTTP client."""

    def execute(self, path: str, query_string: str = "") -> Any:
        """Fetch a path below the environment URL and return decoded JSON."""
        raise NotImplementedError

    def get_url(self, url: str) -> Any:
        """Fetch an absolute URL and return decoded JSON."""
        raise NotImplementedError

    @property
    def space_url(self) -> str:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class ContentDeliveryService:
    """Read-only access to entries, assets, content types and sync.

    Collection calls do not auto-paginate: use ``Page.total`` / ``Page.skip``
    and `QueryBuilder.skip` to walk further pages.
    """

    client: Transport

    def get_entries(self, query: QueryBuilder | None = None) -> Page[Entry]:
        """Fetch one page of entries with links resolved.

        Args:
            query: Filters, ordering and paging; defaults to an empty query.

        Returns:
            Page of entries; links are resolved up to the query's include depth.
        """
        query = query or QueryBuilder()
        page = self._fetch_page("/entries", query)
        _check_item_type(page, Entry)
        log.debug("Fetched entries: %d of total=%d query=%s", len(page), page.total, query)
        return resolve_page(page, query.include_depth)

    def get_entry(self, entry_id: str, query: QueryBuilder | None = None) -> Entry:
        """Fetch one entry by id with its links resolved.

        Queries the collection endpoint with a ``sys.id`` filter so that the
        server returns linked items in ``includes``.

        Raises:
            ResourceNotFoundError: If no entry has that id.
        """
        _check_id(entry_id, "entry id")
        query = (query or QueryBuilder()).field_equals("sys.id", entry_id).limit(1)
        page = self.get_entries(query)
        if not page.items:
            raise ResourceNotFoundError(f"Entry not found: {entry_id}")
        return page.items[0]

    def get_assets(self, query: QueryBuilder | None = None) -> Page[Asset]:
        """Fetch one page of assets."""
        page = self._fetch_page("/assets", query or QueryBuilder())
        _check_item_type(page, Asset)
        return page

    def get_asset(self, asset_id: str, locale: str | None = None) -> Asset:
        """Fetch one asset by id."""
        _check_id(asset_id, "asset id")
        query = QueryBuilder().locale_is(locale) if locale else QueryBuilder()
        payload = self.client.execute(f"/assets/{quote(asset_id, safe='')}", query.to_query_string())
        return parse_asset(payload)

    def get_content_types(self, query: QueryBuilder | None = None) -> Page[ContentType]:
        """Fetch one page of content types."""
        page = self._fetch_page("/content_types", query or QueryBuilder())
        _check_item_type(page, ContentType)
        return page

    def get_content_type(self, content_type_id: str) -> ContentType:
        """Fetch one content type by id."""
        _check_id(content_type_id, "content type id")
        payload = self.client.execute(f"/content_types/{quote(content_type_id, safe='')}")
        return parse_content_type(payload)

    def get_space(self) -> Space:
        """Fetch space metadata including its locales."""
        return parse_space(self.client.get_url(self.client.space_url))

    def sync_initial(self, sync_type: SyncType = SyncType.ALL, content_type_id: str | None = None) -> SyncResult:
        """Start a sync and return the first result page.

        Args:
            sync_type: Restrict to one kind of resource.
            content_type_id: Restrict entries to one content type; only valid
                with `SyncType.ENTRY`.

        Raises:
            ValidationError: If ``content_type_id`` is used with another type.
        """
        params = ["initial=true"]
        if sync_type is not SyncType.ALL:
            params.append(f"type={sync_type.value}")
        if content_type_id is not None:
            if sync_type is not SyncType.ENTRY:
                raise ValidationError("content_type_id requires sync_type=SyncType.ENTRY")
            _check_id(content_type_id, "content type id")
            params.append(f"content_type={quote(content_type_id, safe='')}")
        return parse_sync(self.client.execute("/sync", "&".join(params)))

    def sync_next(self, url: str) -> SyncResult:
        """Follow a ``next_sync_url`` or ``next_page_url``."""
        _check_id(url, "sync url")
        return parse_sync(self.client.get_url(url))

    def close(self) -> None:
        """Close resources held by the underlying client."""
        self.client.close()

    def _fetch_page(self, path: str, query: QueryBuilder) -> Page[Any]:
        return parse_page(self.client.execute(path, query.to_query_string()))


def _check_item_type(page: Page[Any], expected: type) -> None:
    for item in page.items:
        if not isinstance(item, expected):
            raise MalformedResponseError(f"Expected {expected.__name__} items, got {type(item).__name__}")


def _check_id(value: str, label: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} must be a non-empty string")
