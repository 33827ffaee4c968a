"""Command implementations for ContentKit CLI.

Turns CLI options into a `QueryBuilder` and runs delivery calls, separated
from click parameter handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from ContentKit.delivery.service import ContentDeliveryService
from ContentKit.errors import ValidationError
from ContentKit.query.builder import QueryBuilder
from ContentKit.query.parse import parse_filter
from ContentKit.query.sort import SortSpec
from ContentKit.renderers.json import dumps
from ContentKit.utils.log import log


@dataclass(frozen=True, slots=True)
class QueryOptions:
    """Raw query options collected from the command line."""

    content_type: str | None = None
    where: Sequence[str] = ()
    search: str | None = None
    order: str | None = None
    limit: int | None = None
    skip: int | None = None
    include: int | None = None
    locale: str | None = None
    mime_type: str | None = None


def build_query(options: QueryOptions, *, default_locale: str | None = None) -> QueryBuilder:
    """Build a query from CLI options.

    ``--where`` items use the wire syntax ``key=value``, e.g.
    ``fields.color[in]=rainbow,gray``.

    Raises:
        ValidationError: If any option is invalid.
    """
    query = QueryBuilder()
    if options.content_type:
        query = query.content_type_is(options.content_type)
    for item in options.where:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValidationError(f"--where expects KEY=VALUE, got '{item}'")
        query = query.where(parse_filter(key.strip(), value))
    if options.search:
        query = query.full_text_search(options.search)
    if options.mime_type:
        query = query.mime_type_is(options.mime_type)
    if options.order:
        query = query.order_by(SortSpec.parse(options.order))
    if options.skip is not None:
        query = query.skip(options.skip)
    if options.limit is not None:
        query = query.limit(options.limit)
    if options.include is not None:
        query = query.include(options.include)
    locale = options.locale or default_locale
    if locale:
        query = query.locale_is(locale)
    return query


@dataclass(slots=True)
class FetchCommand:
    """Fetch one collection page and write it as JSON."""

    service: ContentDeliveryService
    query: QueryBuilder
    echo: Callable[[str], None]

    def entries(self) -> None:
        log.info("Fetching entries: %s", self.query.to_query_string() or "<all>")
        page = self.service.get_entries(self.query)
        log.info("Fetched %d of %d entries", len(page), page.total)
        self.echo(dumps(page))

    def assets(self) -> None:
        log.info("Fetching assets: %s", self.query.to_query_string() or "<all>")
        page = self.service.get_assets(self.query)
        log.info("Fetched %d of %d assets", len(page), page.total)
        self.echo(dumps(page))
