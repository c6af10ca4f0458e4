"""Event registry — declared local events and the topics they listen to.

One registry per connector instance. It is written while handlers are being
declared (before startup) and only read afterwards by the reconciler and the
inbound dispatcher, so no locking is needed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shopify_connector.runtime import Host

logger = logging.getLogger(__name__)

# Handler signature: (context: dict) -> Any, sync or async
EventHandler = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True)
class DesiredEvent:
    """A local event bound to one Shopify webhook topic."""

    event_id: str
    topic: str
    handler: EventHandler = field(compare=False, repr=False)
    connector_id: str = ""

    def as_context(self) -> dict[str, Any]:
        """The event's own fields, lowest precedence in a dispatch context."""
        return {
            "id": self.event_id,
            "connector_id": self.connector_id,
            "options": {"topic": self.topic},
        }


class EventRegistry:
    """Ordered mapping of event id -> DesiredEvent.

    Usage::

        registry = EventRegistry(connector_id="c1", webhook_path="/hooks/shopify")
        registry.register("orders/create", handle_order)
        registry.all_topics()  # {"orders/create"}
    """

    def __init__(
        self,
        connector_id: str,
        webhook_path: str,
        *,
        host: Host | None = None,
        delegate: Any = None,
    ) -> None:
        self._connector_id = connector_id
        self._webhook_path = webhook_path
        self._host = host
        self._delegate = delegate
        self._events: dict[str, DesiredEvent] = {}

    @property
    def connector_id(self) -> str:
        return self._connector_id

    @property
    def webhook_path(self) -> str:
        return self._webhook_path

    def default_event_id(self, topic: str) -> str:
        """Deterministic id for a (topic, connector) pair."""
        return f"Shopify{self._webhook_path}/{topic}/{self._connector_id}"

    def register(
        self,
        topic: str,
        handler: EventHandler,
        event_id: str | None = None,
    ) -> DesiredEvent:
        """Declare interest in a topic.

        Re-registering an existing event id replaces the previous entry
        rather than adding a second one. When a host is attached, the event
        is bound on it and this registry's delegate is registered for the
        webhook path.
        """
        if not isinstance(topic, str) or not topic:
            raise ValueError(f"Invalid webhook topic: {topic!r}")

        if not event_id:
            event_id = self.default_event_id(topic)

        if event_id in self._events:
            logger.info("Replacing event %s (topic: %s)", event_id, topic)

        event = DesiredEvent(
            event_id=event_id,
            topic=topic,
            handler=handler,
            connector_id=self._connector_id,
        )
        self._events[event_id] = event

        if self._host is not None:
            handle = self._host.register_event(event_id, {"topic": topic})
            self._host.bind_handler(handle, handler)
            if self._delegate is not None:
                self._host.register_http_delegate(self._webhook_path, self._delegate)

        logger.debug("Registered event %s for topic %s", event_id, topic)
        return event

    def get(self, event_id: str) -> DesiredEvent | None:
        return self._events.get(event_id)

    def all_topics(self) -> set[str]:
        """Distinct topics across all declared events."""
        return {event.topic for event in self._events.values()}

    def events_for_topic(self, topic: str) -> list[DesiredEvent]:
        """Events listening to *topic*, in registration order."""
        return [event for event in self._events.values() if event.topic == topic]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[DesiredEvent]:
        return iter(list(self._events.values()))

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events
