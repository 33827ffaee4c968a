"""Tests for the delivery HTTP client: URLs, auth, retries and errors."""

import sys
import unittest
from pathlib import Path
from unittest.mock import patch

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from ContentKit.config.delivery import DeliveryConfig
from ContentKit.delivery.client import DeliveryApiClient
from ContentKit.errors import MalformedResponseError, TransportError


def _config(**overrides) -> DeliveryConfig:
    values = dict(
        space_id="cfexampleapi",
        environment="master",
        access_token_env="CONTENT_DELIVERY_TOKEN",
        access_token="secret",
        use_preview=False,
        base_url="https://cdn.example.com",
        preview_url="https://preview.example.com",
        timeout=5.0,
        max_retries=2,
        retry_base_delay=1.0,
        retry_max_delay=16.0,
        default_locale=None,
    )
    values.update(overrides)
    return DeliveryConfig(**values)


class _FakeResponse:
    def __init__(self, status_code=200, payload=None, *, text=None, headers=None, reason="") -> None:
        self.status_code = status_code
        self._payload = payload
        self._text = text
        self.headers = headers or {}
        self.reason = reason
        self.content = (text or "{}").encode("utf-8")

    def json(self):
        if self._text is not None:
            raise ValueError("not json")
        return self._payload


class _FakeSession:
    def __init__(self, *responses) -> None:
        self._responses = list(responses)
        self.calls = []
        self.closed = False

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


class TestDeliveryApiClient(unittest.TestCase):
    def test_builds_environment_url_and_sends_bearer_token(self) -> None:
        session = _FakeSession(_FakeResponse(payload={"items": []}))
        client = DeliveryApiClient(_config(), session=session)

        payload = client.execute("/entries", "content_type=cat&limit=3")

        self.assertEqual(payload, {"items": []})
        call = session.calls[0]
        self.assertEqual(
            call["url"],
            "https://cdn.example.com/spaces/cfexampleapi/environments/master/entries?content_type=cat&limit=3",
        )
        self.assertEqual(call["headers"]["Authorization"], "Bearer secret")
        self.assertEqual(call["timeout"], 5.0)

    def test_preview_api_url(self) -> None:
        client = DeliveryApiClient(_config(use_preview=True), session=_FakeSession())
        self.assertEqual(client.space_url, "https://preview.example.com/spaces/cfexampleapi")

    def test_path_without_query_string(self) -> None:
        session = _FakeSession(_FakeResponse(payload={}))
        DeliveryApiClient(_config(), session=session).execute("/content_types/cat")
        self.assertTrue(session.calls[0]["url"].endswith("/environments/master/content_types/cat"))

    @patch("ContentKit.delivery.client.time.sleep")
    def test_retries_server_errors(self, sleep) -> None:
        session = _FakeSession(_FakeResponse(503), _FakeResponse(payload={"ok": True}))
        client = DeliveryApiClient(_config(), session=session)

        self.assertEqual(client.execute("/entries"), {"ok": True})
        self.assertEqual(len(session.calls), 2)
        sleep.assert_called_once()

    @patch("ContentKit.delivery.client.time.sleep")
    def test_client_errors_are_not_retried(self, sleep) -> None:
        session = _FakeSession(_FakeResponse(401, {"message": "The access token you sent could not be found"}))
        client = DeliveryApiClient(_config(), session=session)

        with self.assertRaises(TransportError) as ctx:
            client.execute("/entries")

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn("could not be found", str(ctx.exception))
        self.assertEqual(len(session.calls), 1)
        sleep.assert_not_called()

    @patch("ContentKit.delivery.client.time.sleep")
    def test_retries_are_exhausted(self, sleep) -> None:
        session = _FakeSession(_FakeResponse(500), _FakeResponse(502), _FakeResponse(504))
        client = DeliveryApiClient(_config(max_retries=2), session=session)

        with self.assertRaises(TransportError) as ctx:
            client.execute("/entries")

        self.assertEqual(ctx.exception.status_code, 504)
        self.assertEqual(len(session.calls), 3)
        self.assertEqual(sleep.call_count, 2)

    @patch("ContentKit.delivery.client.time.sleep")
    def test_rate_limit_waits_for_reset_header(self, sleep) -> None:
        session = _FakeSession(
            _FakeResponse(429, headers={"X-Contentful-RateLimit-Reset": "3"}),
            _FakeResponse(payload={"ok": True}),
        )
        client = DeliveryApiClient(_config(), session=session)

        client.execute("/entries")

        sleep.assert_called_once_with(3.0)

    @patch("ContentKit.delivery.client.time.sleep")
    def test_connection_errors_are_retried(self, sleep) -> None:
        session = _FakeSession(requests.ConnectionError("reset"), _FakeResponse(payload={"ok": True}))
        client = DeliveryApiClient(_config(), session=session)
        self.assertEqual(client.execute("/entries"), {"ok": True})

    @patch("ContentKit.delivery.client.time.sleep")
    def test_connection_error_after_retries(self, sleep) -> None:
        session = _FakeSession(requests.Timeout("slow"))
        client = DeliveryApiClient(_config(max_retries=0), session=session)
        with self.assertRaises(TransportError) as ctx:
            client.execute("/entries")
        self.assertIsNone(ctx.exception.status_code)

    def test_missing_token_fails_before_request(self) -> None:
        session = _FakeSession()
        client = DeliveryApiClient(_config(access_token=""), session=session)

        with self.assertRaises(TransportError) as ctx:
            client.execute("/entries")

        self.assertIn("CONTENT_DELIVERY_TOKEN", str(ctx.exception))
        self.assertEqual(session.calls, [])

    def test_non_json_body(self) -> None:
        session = _FakeSession(_FakeResponse(text="<html>"))
        with self.assertRaises(MalformedResponseError):
            DeliveryApiClient(_config(), session=session).execute("/entries")

    def test_context_manager_closes_session(self) -> None:
        session = _FakeSession()
        with DeliveryApiClient(_config(), session=session):
            pass
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
