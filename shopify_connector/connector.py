"""Shopify connector — declared webhook events wired to a host runtime.

    runtime = EventRuntime()
    shopify = ShopifyConnector(runtime, Settings(base_url="https://app.example.com"))

    @shopify.webhook("orders/create")
    async def on_order(context):
        ...

    # uvicorn serves runtime.app; its lifespan registers missing webhooks
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable

from fastapi import Request

from shopify_connector.client import ShopifyWebhookClient, SubscriptionClient
from shopify_connector.config import Settings
from shopify_connector.registry import DesiredEvent, EventHandler, EventRegistry
from shopify_connector.runtime import Host
from shopify_connector.webhooks.address import CallbackAddress
from shopify_connector.webhooks.dispatcher import InboundDispatcher, Notification
from shopify_connector.webhooks.reconciler import ReconciliationReport, WebhookReconciler
from shopify_connector.webhooks.verification import verify_request

logger = logging.getLogger(__name__)


class ShopifyConnector:
    """One Shopify app's webhooks: registration on start, dispatch on delivery."""

    def __init__(
        self,
        host: Host,
        settings: Settings | None = None,
        connector_id: str | None = None,
        *,
        client: SubscriptionClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.id = connector_id or str(uuid.uuid4())[:8]
        self._host = host
        self._client = client or ShopifyWebhookClient(self.settings)
        self.registry = EventRegistry(
            self.id,
            self.settings.resolved_webhook_path,
            host=host,
            delegate=self,
        )
        self._reconciler = WebhookReconciler(self._client)
        self._dispatcher = InboundDispatcher(self.registry, host)
        self.last_report: ReconciliationReport | None = None

        add_connector = getattr(host, "add_connector", None)
        if add_connector is not None:
            add_connector(self)

    @property
    def callback_address(self) -> CallbackAddress:
        return CallbackAddress(self.settings.base_url, self.settings.resolved_webhook_path)

    def on(
        self,
        topic: str,
        handler: EventHandler,
        event_id: str | None = None,
    ) -> DesiredEvent:
        """Run *handler* for every delivery of *topic*."""
        return self.registry.register(topic, handler, event_id)

    def webhook(
        self, topic: str, event_id: str | None = None
    ) -> Callable[[EventHandler], EventHandler]:
        """Decorator form of :meth:`on`."""

        def decorator(fn: EventHandler) -> EventHandler:
            self.on(topic, fn, event_id)
            return fn

        return decorator

    async def on_start(self) -> ReconciliationReport:
        """Register any missing webhook subscriptions for declared topics."""
        report = await self._reconciler.reconcile(
            self.registry.all_topics(), self.callback_address
        )
        self.last_report = report
        if report.outcomes:
            logger.info(
                "Shopify webhooks reconciled for %s: %d reused, %d created, %d failed",
                report.address,
                len(report.reused),
                len(report.created),
                len(report.failed),
            )
        if self.settings.strict_registration:
            report.raise_for_failures()
        return report

    async def handle(self, request: Request) -> bool:
        """HTTP delegate: verify, parse and dispatch one webhook delivery.

        Returns False when the body is not a JSON object (nothing dispatched).
        """
        body = await request.body()
        verify_request(self.settings.webhook_secret, body, request.headers)

        try:
            payload = json.loads(body) if body else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring webhook with invalid JSON body")
            return False
        if not isinstance(payload, dict):
            logger.warning("Ignoring webhook with non-object body")
            return False

        notification = Notification.from_headers(request.headers, payload)
        return await self._dispatcher.dispatch(notification)

    def sdk(self) -> SubscriptionClient:
        """The Admin API client used for webhook registration."""
        return self._client

    async def aclose(self) -> None:
        aclose = getattr(self._client, "aclose", None)
        if aclose is not None:
            await aclose()
