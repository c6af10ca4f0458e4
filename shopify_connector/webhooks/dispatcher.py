"""Inbound dispatcher — routes one webhook delivery to its local handlers.

Maps the delivery's X-Shopify-Topic to every event registered for that topic
and invokes them through the host runtime, one after the other, in
registration order.

Context passed to each handler is layered (later wins):
    event fields  <  payload fields  <  topic
so ``context["topic"]`` is always the delivered topic header.

A handler failure is not isolated: it aborts the remaining handlers for
the same delivery and propagates as HandlerFailure.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from shopify_connector.errors import HandlerFailure

if TYPE_CHECKING:
    from shopify_connector.registry import EventRegistry
    from shopify_connector.runtime import Host

logger = logging.getLogger(__name__)

TOPIC_HEADER = "x-shopify-topic"
WEBHOOK_ID_HEADER = "x-shopify-webhook-id"
SHOP_DOMAIN_HEADER = "x-shopify-shop-domain"
API_VERSION_HEADER = "x-shopify-api-version"


@dataclass
class Notification:
    """One inbound webhook delivery."""

    topic: str
    body: dict[str, Any] = field(default_factory=dict)
    webhook_id: str = ""
    shop_domain: str = ""
    api_version: str = ""

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], body: dict[str, Any]) -> Notification:
        """Build from request headers (any case) and the parsed JSON body."""
        lowered = {k.lower(): v for k, v in headers.items()}
        return cls(
            topic=lowered.get(TOPIC_HEADER, ""),
            body=body,
            webhook_id=lowered.get(WEBHOOK_ID_HEADER, ""),
            shop_domain=lowered.get(SHOP_DOMAIN_HEADER, ""),
            api_version=lowered.get(API_VERSION_HEADER, ""),
        )


class InboundDispatcher:
    """Fans a notification out to the registry's handlers for its topic."""

    def __init__(self, registry: EventRegistry, host: Host) -> None:
        self._registry = registry
        self._host = host

    async def dispatch(self, notification: Notification) -> bool:
        topic = notification.topic
        events = self._registry.events_for_topic(topic)
        if not events:
            logger.debug("No handlers for topic %r", topic)

        for event in events:
            context = {**event.as_context(), **notification.body, "topic": topic}
            try:
                await self._host.dispatch_event(event.event_id, context)
            except Exception as e:
                raise HandlerFailure(event.event_id, topic) from e

        return True
