"""Tests for the delivery service with a stubbed transport."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))
sys.path.insert(0, str(REPO_ROOT / "test"))

from ContentKit.core.models import Asset, Entry, Link, LinkType, SyncType
from ContentKit.delivery.service import ContentDeliveryService
from ContentKit.errors import MalformedResponseError, ResourceNotFoundError, ValidationError
from ContentKit.query import MimeTypeRestriction, QueryBuilder
from payloads import asset, collection, entry, link


class _StubClient:
    space_url = "https://cdn.example.com/spaces/cfexampleapi"

    def __init__(self, *payloads) -> None:
        self._payloads = list(payloads)
        self.requests = []
        self.closed = False

    def execute(self, path, query_string=""):
        self.requests.append((path, query_string))
        return self._payloads.pop(0)

    def get_url(self, url):
        self.requests.append((url, None))
        return self._payloads.pop(0)

    def close(self) -> None:
        self.closed = True


def _nyancat_page():
    return collection(
        [entry("nyancat", name="Nyan Cat", bestFriend=link("Entry", "happycat"), image=link("Asset", "img"))],
        entries=[entry("happycat", name="Happy Cat", bestFriend=link("Entry", "nyancat"))],
        assets=[asset("img", "Nyan Cat")],
    )


class TestGetEntries(unittest.TestCase):
    def test_sends_query_and_resolves_with_default_depth(self) -> None:
        client = _StubClient(_nyancat_page())
        service = ContentDeliveryService(client=client)

        page = service.get_entries(QueryBuilder().content_type_is("cat").limit(3))

        self.assertEqual(client.requests, [("/entries", "content_type=cat&limit=3")])
        nyancat = page.items[0]
        self.assertEqual(nyancat.get_entry("bestFriend").get_text("name"), "Happy Cat")
        self.assertEqual(nyancat.get_asset("image").title, "Nyan Cat")
        self.assertEqual(nyancat.get_entry("bestFriend").get_link("bestFriend"), Link(LinkType.ENTRY, "nyancat"))

    def test_include_zero_leaves_links(self) -> None:
        client = _StubClient(_nyancat_page())

        page = ContentDeliveryService(client=client).get_entries(QueryBuilder().include(0))

        self.assertEqual(client.requests[0][1], "include=0")
        self.assertEqual(page.items[0].get_link("bestFriend"), Link(LinkType.ENTRY, "happycat"))

    def test_empty_query(self) -> None:
        client = _StubClient(collection([]))
        page = ContentDeliveryService(client=client).get_entries()
        self.assertEqual(client.requests, [("/entries", "")])
        self.assertEqual(page.total, 0)

    def test_wrong_item_type_is_rejected(self) -> None:
        client = _StubClient(collection([asset("img", "Image")]))
        with self.assertRaises(MalformedResponseError):
            ContentDeliveryService(client=client).get_entries()


class TestGetEntry(unittest.TestCase):
    def test_fetches_by_sys_id(self) -> None:
        client = _StubClient(_nyancat_page())

        nyancat = ContentDeliveryService(client=client).get_entry("nyancat")

        self.assertIsInstance(nyancat, Entry)
        self.assertEqual(client.requests, [("/entries", "sys.id=nyancat&limit=1")])
        self.assertEqual(nyancat.get_entry("bestFriend").id, "happycat")

    def test_keeps_caller_query(self) -> None:
        client = _StubClient(_nyancat_page())
        ContentDeliveryService(client=client).get_entry("nyancat", QueryBuilder().locale_is("tlh").include(2))
        self.assertEqual(client.requests[0][1], "sys.id=nyancat&limit=1&include=2&locale=tlh")

    def test_not_found(self) -> None:
        client = _StubClient(collection([]))
        with self.assertRaises(ResourceNotFoundError):
            ContentDeliveryService(client=client).get_entry("garfield")

    def test_empty_id(self) -> None:
        with self.assertRaises(ValidationError):
            ContentDeliveryService(client=_StubClient()).get_entry(" ")


class TestAssetsAndTypes(unittest.TestCase):
    def test_get_assets_with_mime_type(self) -> None:
        client = _StubClient(collection([asset("img", "Image")]))

        page = ContentDeliveryService(client=client).get_assets(QueryBuilder().mime_type_is(MimeTypeRestriction.IMAGE))

        self.assertEqual(client.requests, [("/assets", "mimetype_group=image")])
        self.assertIsInstance(page.items[0], Asset)

    def test_get_asset_by_id(self) -> None:
        client = _StubClient(asset("nyan cat", "Nyan Cat"))

        result = ContentDeliveryService(client=client).get_asset("nyan cat", locale="en-US")

        self.assertEqual(result.title, "Nyan Cat")
        self.assertEqual(client.requests, [("/assets/nyan%20cat", "locale=en-US")])

    def test_get_content_type(self) -> None:
        client = _StubClient({"sys": {"id": "cat", "type": "ContentType"}, "name": "Cat", "fields": []})
        content_type = ContentDeliveryService(client=client).get_content_type("cat")
        self.assertEqual(content_type.name, "Cat")
        self.assertEqual(client.requests, [("/content_types/cat", "")])

    def test_get_space(self) -> None:
        client = _StubClient(
            {
                "sys": {"id": "cfexampleapi", "type": "Space"},
                "name": "Example",
                "locales": [{"code": "en-US", "name": "English", "default": True}],
            }
        )

        space = ContentDeliveryService(client=client).get_space()

        self.assertEqual(space.default_locale.code, "en-US")
        self.assertEqual(client.requests, [(_StubClient.space_url, None)])


class TestSync(unittest.TestCase):
    def test_initial_sync_params(self) -> None:
        client = _StubClient(
            {
                "items": [
                    entry("nyancat", locale=None),
                    {"sys": {"id": "gone", "type": "DeletedEntry"}},
                ],
                "nextSyncUrl": "https://cdn.example.com/sync?sync_token=abc",
            }
        )

        result = ContentDeliveryService(client=client).sync_initial(SyncType.ENTRY, content_type_id="cat")

        self.assertEqual(client.requests, [("/sync", "initial=true&type=Entry&content_type=cat")])
        self.assertEqual([item.id for item in result.entries], ["nyancat"])
        self.assertEqual(result.deleted_entry_ids, ("gone",))
        self.assertEqual(result.next_sync_url, "https://cdn.example.com/sync?sync_token=abc")

    def test_content_type_requires_entry_sync(self) -> None:
        with self.assertRaises(ValidationError):
            ContentDeliveryService(client=_StubClient()).sync_initial(SyncType.ASSET, content_type_id="cat")

    def test_sync_next_follows_url(self) -> None:
        url = "https://cdn.example.com/sync?sync_token=page2"
        client = _StubClient({"items": [], "nextPageUrl": "https://cdn.example.com/sync?sync_token=page3"})

        result = ContentDeliveryService(client=client).sync_next(url)

        self.assertEqual(client.requests, [(url, None)])
        self.assertEqual(result.next_page_url, "https://cdn.example.com/sync?sync_token=page3")

    def test_sync_without_next_url_is_malformed(self) -> None:
        with self.assertRaises(MalformedResponseError):
            ContentDeliveryService(client=_StubClient({"items": []})).sync_initial()


class TestClose(unittest.TestCase):
    def test_close_closes_client(self) -> None:
        client = _StubClient()
        ContentDeliveryService(client=client).close()
        self.assertTrue(client.closed)


if __name__ == "__main__":
    unittest.main()
