"""Delivery layer for ContentKit.

Provides the HTTP client, page model, link resolver and the service that
composes them, plus a factory building the service from configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ContentKit.delivery.page import Page, parse_page
from ContentKit.delivery.resolver import LinkResolver, resolve_page
from ContentKit.delivery.service import ContentDeliveryService

if TYPE_CHECKING:
    from ContentKit.config import AppConfig


def create_delivery_service(config: AppConfig) -> ContentDeliveryService:
    """Create a delivery service for the configured space.

    Args:
        config: Application configuration containing delivery settings.

    Returns:
        Service backed by a new `DeliveryApiClient`; close it when done.
    """
    from ContentKit.delivery.client import DeliveryApiClient

    return ContentDeliveryService(client=DeliveryApiClient(config.delivery))


__all__ = [
    "ContentDeliveryService",
    "LinkResolver",
    "Page",
    "create_delivery_service",
    "parse_page",
    "resolve_page",
]
