"""Delivery API connection configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlparse

from ContentKit.config.common import check_non_empty, get_section

DEFAULT_BASE_URL = "https://cdn.contentful.com"
DEFAULT_PREVIEW_URL = "https://preview.contentful.com"


@dataclass(frozen=True, slots=True)
class DeliveryConfig:
    """Store validated delivery API settings.

    The access token itself is never written in config files; it is read from
    the environment variable named by ``access_token_env``.
    """

    space_id: str
    environment: str
    access_token_env: str
    access_token: str
    use_preview: bool
    base_url: str
    preview_url: str
    timeout: float
    max_retries: int
    retry_base_delay: float
    retry_max_delay: float
    default_locale: str | None

    @property
    def api_url(self) -> str:
        """Base URL for the selected API (delivery or preview)."""
        return (self.preview_url if self.use_preview else self.base_url).rstrip("/")


def load_delivery(raw: Mapping[str, Any]) -> DeliveryConfig:
    """Load the ``delivery`` section.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed delivery configuration.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "delivery", required=True)
    access_token_env = section.get_str("access_token_env")
    return DeliveryConfig(
        space_id=section.get_str("space_id"),
        environment=section.get_str("environment", "master"),
        access_token_env=access_token_env,
        access_token=os.getenv(access_token_env, "").strip(),
        use_preview=section.get_bool("use_preview", False),
        base_url=section.get_str("base_url", DEFAULT_BASE_URL),
        preview_url=section.get_str("preview_url", DEFAULT_PREVIEW_URL),
        timeout=section.get_float("timeout", 30.0),
        max_retries=section.get_int("max_retries", 3),
        retry_base_delay=section.get_float("retry_base_delay", 1.0),
        retry_max_delay=section.get_float("retry_max_delay", 16.0),
        default_locale=section.get_optional_str("default_locale"),
    )


def check_delivery(config: DeliveryConfig) -> None:
    """Validate delivery domain constraints.

    A missing access token is not an error here: `query-string` works
    offline, and the client reports the missing token on first request.

    Raises:
        ValueError: If values violate delivery constraints.
    """
    check_non_empty(config.space_id, "delivery.space_id")
    check_non_empty(config.environment, "delivery.environment")
    check_non_empty(config.access_token_env, "delivery.access_token_env")
    for key, url in (("delivery.base_url", config.base_url), ("delivery.preview_url", config.preview_url)):
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"{key} must be an http(s) URL")
    if config.timeout <= 0:
        raise ValueError("delivery.timeout must be positive")
    if config.max_retries < 0:
        raise ValueError("delivery.max_retries must be >= 0")
    if config.retry_base_delay < 0:
        raise ValueError("delivery.retry_base_delay must be >= 0")
    if config.retry_max_delay < config.retry_base_delay:
        raise ValueError("delivery.retry_max_delay must be >= delivery.retry_base_delay")
    if config.default_locale is not None:
        check_non_empty(config.default_locale, "delivery.default_locale")
