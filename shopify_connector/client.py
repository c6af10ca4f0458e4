"""Shopify Admin API client for webhook subscriptions.

Wraps the REST Admin ``webhooks.json`` resource: list every subscription
registered for the app and create new ones. Listing retries transient
failures with backoff; creating retries only throttled requests, since a
POST whose response was lost may already have taken effect. Everything
else is mapped onto the connector error taxonomy.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, Field

from shopify_connector.config import Settings
from shopify_connector.errors import RemoteCreateFailure, RemoteListFailure
from shopify_connector.retry import retry_with_backoff

logger = logging.getLogger(__name__)

_PAGE_LIMIT = 250  # Shopify REST maximum


class Subscription(BaseModel):
    """A webhook subscription as stored by Shopify."""

    address: str
    topic: str
    created_at: datetime | None = None
    id: int | None = None
    format: str = "json"
    errors: Any = Field(default=None, exclude=True)

    model_config = {"extra": "ignore"}

    def matches(self, address: str, topic: str) -> bool:
        return self.address == address and self.topic == topic


@runtime_checkable
class SubscriptionClient(Protocol):
    """What the reconciler needs from a remote API client."""

    async def list_subscriptions(self) -> list[Subscription]:
        ...

    async def create_subscription(self, address: str, topic: str) -> Subscription:
        ...


class ShopifyWebhookClient:
    """Async client for the Shopify webhook subscription endpoints."""

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=f"{settings.admin_url}/admin/api/{settings.api_version}",
            headers={
                "X-Shopify-Access-Token": settings.access_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=settings.request_timeout,
            transport=transport,
        )

    @property
    def http(self) -> httpx.AsyncClient:
        """Underlying httpx client, for Admin API calls beyond webhooks."""
        return self._http

    @retry_with_backoff(max_retries=3, base_delay=1.0, max_delay=30.0)
    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        response = await self._http.get(url, **kwargs)
        response.raise_for_status()
        return response

    # Creating a webhook is not idempotent: only a throttled (429) POST is
    # known to have been rejected before Shopify acted on it.
    @retry_with_backoff(
        max_retries=3,
        base_delay=1.0,
        max_delay=30.0,
        retry_statuses={429},
        retry_connection_errors=False,
    )
    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        response = await self._http.post(url, **kwargs)
        response.raise_for_status()
        return response

    async def list_subscriptions(self) -> list[Subscription]:
        """Return every webhook subscription, following page links."""
        subscriptions: list[Subscription] = []
        url: str | None = "/webhooks.json"
        params: dict[str, Any] | None = {"limit": _PAGE_LIMIT}

        try:
            while url:
                response = await self._get(url, params=params)
                for item in response.json().get("webhooks", []):
                    subscriptions.append(Subscription.model_validate(item))
                # The next link already carries limit + page_info
                url = response.links.get("next", {}).get("url")
                params = None
        except httpx.HTTPStatusError as e:
            raise RemoteListFailure(
                f"HTTP {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise RemoteListFailure(type(e).__name__) from e

        logger.debug("Listed %d webhook subscriptions", len(subscriptions))
        return subscriptions

    async def create_subscription(self, address: str, topic: str) -> Subscription:
        """Create a JSON webhook subscription for *topic* at *address*.

        A 422 response (Shopify validation error, e.g. an unknown topic) is
        returned as a Subscription without ``created_at`` so the caller can
        treat it as a soft failure.
        """
        body = {"webhook": {"address": address, "topic": topic, "format": "json"}}
        try:
            response = await self._post("/webhooks.json", json=body)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 422:
                return Subscription(
                    address=address, topic=topic, errors=_error_body(e.response)
                )
            raise RemoteCreateFailure(
                [topic],
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteCreateFailure([topic], type(e).__name__) from e

        webhook = response.json().get("webhook") or {}
        return Subscription.model_validate({"address": address, "topic": topic, **webhook})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> ShopifyWebhookClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json().get("errors")
    except ValueError:
        return response.text
