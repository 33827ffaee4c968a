"""Delivery API HTTP client.

Issues GET requests with retry/backoff and returns decoded JSON. Query
construction, payload parsing and link resolution are handled elsewhere.

One client owns one `requests.Session`; do not share a client between threads
without external locking.
"""

from __future__ import annotations

import random
import time
from typing import Any

import requests

from ContentKit.config.delivery import DeliveryConfig
from ContentKit.errors import MalformedResponseError, TransportError
from ContentKit.utils.log import log

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
RATE_LIMIT_RESET_HEADER = "X-Contentful-RateLimit-Reset"

HEADERS = {
    "User-Agent": "contentkit/0.1",
    "Accept": "application/json",
}


class DeliveryApiClient:
    """Low-level HTTP client for the content delivery API."""

    def __init__(self, config: DeliveryConfig, *, session: requests.Session | None = None) -> None:
        """Initialize the client with a reusable HTTP session.

        Args:
            config: Validated delivery settings.
            session: Optional preconfigured session.
        """
        self._config = config
        self._session = session or requests.Session()

    def close(self) -> None:
        """Close the underlying HTTP session and release pooled connections."""
        self._session.close()

    def __enter__(self) -> DeliveryApiClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def environment_url(self) -> str:
        """URL of the configured space environment."""
        cfg = self._config
        return f"{cfg.api_url}/spaces/{cfg.space_id}/environments/{cfg.environment}"

    @property
    def space_url(self) -> str:
        """URL of the configured space."""
        return f"{self._config.api_url}/spaces/{self._config.space_id}"

    def execute(self, path: str, query_string: str = "") -> Any:
        """Fetch ``path`` below the environment URL.

        Args:
            path: Resource path such as ``/entries`` or ``/assets/<id>``.
            query_string: Encoded query string without leading ``?``.

        Returns:
            Decoded JSON body.

        Raises:
            TransportError: On network failure or HTTP error status.
            MalformedResponseError: If the body is not JSON.
        """
        url = f"{self.environment_url}/{path.lstrip('/')}" if path else self.environment_url
        return self.get_url(f"{url}?{query_string}" if query_string else url)

    def get_url(self, url: str) -> Any:
        """Fetch an absolute URL (e.g. a sync ``nextSyncUrl``) and decode JSON."""
        if not self._config.access_token:
            raise TransportError(
                f"Delivery access token missing: set the {self._config.access_token_env} environment variable"
            )
        response = self._get_with_retry(url)
        try:
            return response.json()
        except ValueError as error:
            raise MalformedResponseError(f"Response from {url} is not valid JSON") from error

    def _get_with_retry(self, url: str) -> requests.Response:
        """Issue GET with retries for transient failures.

        Retries on timeouts, connection errors and 429/5xx up to
        ``max_retries`` times. Other HTTP errors fail immediately.
        """
        attempts = self._config.max_retries + 1
        headers = dict(HEADERS)
        headers["Authorization"] = f"Bearer {self._config.access_token}"

        last_error: TransportError | None = None
        for attempt in range(1, attempts + 1):
            log.debug("Delivery GET attempt=%d/%d url=%s", attempt, attempts, url)
            retry_after: float | None = None
            try:
                response = self._session.get(url, headers=headers, timeout=self._config.timeout)
            except (requests.Timeout, requests.ConnectionError) as error:
                last_error = TransportError(f"Request to {url} failed: {error}")
                last_error.__cause__ = error
            else:
                if response.status_code < 400:
                    log.debug("Delivery response ok: status=%s bytes=%s", response.status_code, len(response.content))
                    return response
                last_error = TransportError(
                    f"HTTP {response.status_code} from {url}: {_error_message(response)}",
                    status_code=response.status_code,
                )
                if response.status_code not in RETRYABLE_STATUS:
                    raise last_error
                if response.status_code == 429:
                    retry_after = _rate_limit_reset(response)

            if attempt < attempts:
                delay = self._backoff(attempt, retry_after)
                log.debug("Delivery retry attempt=%d/%d delay=%.2fs error=%s", attempt, attempts, delay, last_error)
                time.sleep(delay)

        assert last_error is not None
        raise last_error

    def _backoff(self, attempt: int, retry_after: float | None) -> float:
        """Return the delay before the next attempt."""
        cfg = self._config
        if retry_after is not None:
            return min(retry_after, cfg.retry_max_delay)
        delay = cfg.retry_base_delay * (2 ** (attempt - 1)) + random.uniform(0, 0.3)
        return min(delay, cfg.retry_max_delay)


def _rate_limit_reset(response: requests.Response) -> float | None:
    """Read the seconds-until-reset header of a 429 response."""
    raw = response.headers.get(RATE_LIMIT_RESET_HEADER)
    if raw is None:
        return None
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return None


def _error_message(response: requests.Response) -> str:
    """Extract the API error message from an error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.reason or ""
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return response.reason or ""
