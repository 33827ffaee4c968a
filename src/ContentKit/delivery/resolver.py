"""Link resolution over a page's include side-tables.

Replaces `Link` placeholders in each item's field tree with the linked
`Entry` / `Asset`. Links on an item's own fields are hop 1; links on a linked
entry's fields are hop 2, and so on. A link is resolved only while its hop is
within the include depth.

Each root item is walked breadth-first. A linked entry is expanded once per
root, at the level where it is first reached, and that one object is shared
by every link pointing at it from the level above. A link is left as-is when:
- its hop exceeds the include depth,
- its target is the root or sits on the same or a shallower level than the
  linking entry (this covers every cycle),
- its target is not in the side-tables (deleted, unpublished, not included).

Work per root is linear in the number of linked entries and links. Resolution
never raises and never mutates its inputs.
"""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Any, Iterator, Mapping

from ContentKit.core.models import Asset, Entry, Link, LinkType
from ContentKit.delivery.page import Page
from ContentKit.utils.log import log


class LinkResolver:
    """Resolve links against one page's items and includes."""

    def __init__(self, page: Page[Any]) -> None:
        entries: dict[str, Entry] = {}
        assets: dict[str, Asset] = {}
        for item in page.items:
            if isinstance(item, Entry):
                entries[item.id] = item
            elif isinstance(item, Asset):
                assets[item.id] = item
        entries.update(page.linked_entries)
        assets.update(page.linked_assets)
        self._entries = entries
        self._assets = assets
        self.unresolved = 0

    def resolve(self, item: Any, include_depth: int) -> Any:
        """Return ``item`` with links resolved up to ``include_depth`` hops."""
        if not isinstance(item, Entry):
            return item
        levels, order = self._discover(item, include_depth)

        # Deepest level first, so link targets are built before their parents.
        built: dict[tuple[str, str], Entry] = {}
        for entry in reversed(order):
            level = levels[_key(entry)]
            fields = {
                name: self._substitute(value, level, include_depth, levels, built)
                for name, value in entry.fields.items()
            }
            built[_key(entry)] = replace(entry, fields=fields)
        return built[_key(item)]

    def _discover(self, root: Entry, include_depth: int) -> tuple[dict[tuple[str, str], int], list[Entry]]:
        """Assign each reachable entry the level where BFS first meets it."""
        levels = {_key(root): 0}
        order = [root]
        queue = deque([root])
        while queue:
            entry = queue.popleft()
            level = levels[_key(entry)]
            if level >= include_depth:
                continue
            for link in _links(entry.fields):
                if link.target_type is not LinkType.ENTRY or link.key in levels:
                    continue
                target = self._entries.get(link.target_id)
                if target is None:
                    continue
                levels[link.key] = level + 1
                order.append(target)
                queue.append(target)
        return levels, order

    def _substitute(
        self,
        value: Any,
        level: int,
        include_depth: int,
        levels: Mapping[tuple[str, str], int],
        built: Mapping[tuple[str, str], Entry],
    ) -> Any:
        if isinstance(value, Link):
            return self._resolve_link(value, level, include_depth, levels, built)
        if isinstance(value, Mapping):
            return {
                key: self._substitute(item, level, include_depth, levels, built) for key, item in value.items()
            }
        if isinstance(value, list):
            return [self._substitute(item, level, include_depth, levels, built) for item in value]
        return value

    def _resolve_link(
        self,
        link: Link,
        level: int,
        include_depth: int,
        levels: Mapping[tuple[str, str], int],
        built: Mapping[tuple[str, str], Entry],
    ) -> Any:
        if level + 1 > include_depth:
            self.unresolved += 1
            return link

        if link.target_type is LinkType.ASSET:
            asset = self._assets.get(link.target_id)
            if asset is None:
                self.unresolved += 1
                return link
            return asset

        if levels.get(link.key) != level + 1:
            self.unresolved += 1
            return link
        return built[link.key]


def resolve_page(page: Page[Any], include_depth: int) -> Page[Any]:
    """Return a copy of ``page`` whose items have their links resolved.

    Args:
        page: Parsed page.
        include_depth: Maximum number of link hops to resolve.

    Returns:
        New page; side-tables are kept unchanged.
    """
    resolver = LinkResolver(page)
    items = [resolver.resolve(item, include_depth) for item in page.items]
    if resolver.unresolved:
        log.debug("Left %d link(s) unresolved (include_depth=%d)", resolver.unresolved, include_depth)
    return replace(page, items=items)


def _links(value: Any) -> Iterator[Link]:
    """Yield every link in a field tree, in field order."""
    if isinstance(value, Link):
        yield value
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from _links(item)
    elif isinstance(value, list):
        for item in value:
            yield from _links(item)


def _key(entry: Entry) -> tuple[str, str]:
    return LinkType.ENTRY.value, entry.id
