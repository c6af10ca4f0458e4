"""Host runtime — event bindings, HTTP delegates and connector lifecycle.

Connectors declare events on the runtime, bind handlers to them and ask it
to route an HTTP path to themselves. The runtime owns the FastAPI app: its
lifespan starts every connector (webhook reconciliation) before serving and
closes them on shutdown.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Protocol

from fastapi import FastAPI

from shopify_connector.errors import InvalidConfiguration
from shopify_connector.registry import EventHandler
from shopify_connector.webhooks.handlers import HTTPDelegate, register_webhook_route

logger = logging.getLogger(__name__)


@dataclass
class EventHandle:
    """A declared event on the runtime."""
    event_id: str
    descriptor: dict[str, Any]
    handler: EventHandler | None = None


class Host(Protocol):
    """Registration and dispatch primitives a connector relies on."""

    def register_event(self, event_id: str, descriptor: dict[str, Any]) -> EventHandle:
        ...

    def bind_handler(self, handle: EventHandle, handler: EventHandler) -> None:
        ...

    def register_http_delegate(self, path: str, delegate: HTTPDelegate) -> None:
        ...

    async def dispatch_event(self, event_id: str, context: dict[str, Any]) -> Any:
        ...


class Connector(Protocol):
    async def on_start(self) -> Any:
        ...

    async def aclose(self) -> None:
        ...


class EventRuntime:
    """In-process host for connectors, served by FastAPI."""

    def __init__(self, title: str = "shopify-connector") -> None:
        self._events: dict[str, EventHandle] = {}
        self._delegates: dict[str, HTTPDelegate] = {}
        self._connectors: list[Connector] = []
        self.app = FastAPI(title=title, lifespan=self._lifespan)

    # -- registration -------------------------------------------------------

    def register_event(self, event_id: str, descriptor: dict[str, Any]) -> EventHandle:
        handle = EventHandle(event_id=event_id, descriptor=dict(descriptor))
        self._events[event_id] = handle
        return handle

    def bind_handler(self, handle: EventHandle, handler: EventHandler) -> None:
        handle.handler = handler

    def register_http_delegate(self, path: str, delegate: HTTPDelegate) -> None:
        """Route POSTs on *path* to *delegate*; one delegate per path."""
        current = self._delegates.get(path)
        if current is delegate:
            return
        if current is not None:
            raise InvalidConfiguration(
                f"Webhook path {path} is already served by another connector",
                option="webhook_path",
            )
        self._delegates[path] = delegate
        register_webhook_route(self.app, path, delegate)

    def add_connector(self, connector: Connector) -> None:
        if connector not in self._connectors:
            self._connectors.append(connector)

    @property
    def events(self) -> dict[str, EventHandle]:
        return dict(self._events)

    @property
    def delegates(self) -> dict[str, HTTPDelegate]:
        return dict(self._delegates)

    # -- dispatch -----------------------------------------------------------

    async def dispatch_event(self, event_id: str, context: dict[str, Any]) -> Any:
        """Run the handler bound to *event_id*; awaits coroutine handlers."""
        handle = self._events.get(event_id)
        if handle is None or handle.handler is None:
            logger.warning("No handler bound for event %s", event_id)
            return None

        result = handle.handler(context)
        if inspect.isawaitable(result):
            result = await result
        return result

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        for connector in self._connectors:
            await connector.on_start()

    async def stop(self) -> None:
        for connector in self._connectors:
            await connector.aclose()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        # stop() also runs when a connector fails to start
        try:
            await self.start()
            yield
        finally:
            await self.stop()
