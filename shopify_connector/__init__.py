"""Shopify connector — keeps webhook subscriptions in sync and dispatches deliveries."""

from shopify_connector.config import DEFAULT_WEBHOOK_PATH, Settings
from shopify_connector.connector import ShopifyConnector
from shopify_connector.errors import (
    ConnectorError,
    HandlerFailure,
    InvalidConfiguration,
    RemoteCreateFailure,
    RemoteListFailure,
    WebhookVerificationError,
)
from shopify_connector.runtime import EventRuntime

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_WEBHOOK_PATH",
    "ConnectorError",
    "EventRuntime",
    "HandlerFailure",
    "InvalidConfiguration",
    "RemoteCreateFailure",
    "RemoteListFailure",
    "Settings",
    "ShopifyConnector",
    "WebhookVerificationError",
]
