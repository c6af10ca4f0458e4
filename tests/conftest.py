"""Shared fixtures for the Shopify connector test suite."""

from __future__ import annotations

import inspect
from datetime import datetime, timezone
from typing import Any

import pytest

from shopify_connector.client import Subscription
from shopify_connector.config import Settings
from shopify_connector.registry import EventRegistry
from shopify_connector.runtime import EventHandle

BASE_URL = "https://app.example.com"
WEBHOOK_PATH = "/hooks/shopify"
CALLBACK_URL = BASE_URL + WEBHOOK_PATH


class FakeSubscriptionClient:
    """In-memory stand-in for the Shopify webhook endpoints."""

    def __init__(
        self,
        existing: list[Subscription] | None = None,
        *,
        soft_fail_topics: set[str] | None = None,
        raise_topics: set[str] | None = None,
        list_error: Exception | None = None,
    ) -> None:
        self.subscriptions: list[Subscription] = list(existing or [])
        self.soft_fail_topics = soft_fail_topics or set()
        self.raise_topics = raise_topics or set()
        self.list_error = list_error
        self.list_calls = 0
        self.create_calls: list[tuple[str, str]] = []
        self.closed = False

    async def list_subscriptions(self) -> list[Subscription]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.subscriptions)

    async def create_subscription(self, address: str, topic: str) -> Subscription:
        self.create_calls.append((address, topic))
        if topic in self.raise_topics:
            raise RuntimeError(f"boom: {topic}")
        if topic in self.soft_fail_topics:
            return Subscription(address=address, topic=topic, errors={"topic": ["Invalid topic specified."]})
        sub = Subscription(
            address=address,
            topic=topic,
            id=len(self.subscriptions) + 1,
            created_at=datetime.now(timezone.utc),
        )
        self.subscriptions.append(sub)
        return sub

    async def aclose(self) -> None:
        self.closed = True


class RecordingHost:
    """Host that records registrations and dispatches."""

    def __init__(self) -> None:
        self.events: dict[str, EventHandle] = {}
        self.delegates: dict[str, Any] = {}
        self.dispatched: list[tuple[str, dict[str, Any]]] = []

    def register_event(self, event_id: str, descriptor: dict[str, Any]) -> EventHandle:
        handle = EventHandle(event_id=event_id, descriptor=descriptor)
        self.events[event_id] = handle
        return handle

    def bind_handler(self, handle: EventHandle, handler: Any) -> None:
        handle.handler = handler

    def register_http_delegate(self, path: str, delegate: Any) -> None:
        self.delegates[path] = delegate

    async def dispatch_event(self, event_id: str, context: dict[str, Any]) -> Any:
        self.dispatched.append((event_id, context))
        result = self.events[event_id].handler(context)
        if inspect.isawaitable(result):
            result = await result
        return result


def make_subscription(topic: str, address: str = CALLBACK_URL) -> Subscription:
    return Subscription(
        address=address,
        topic=topic,
        id=abs(hash((address, topic))) % 10_000,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        shop_name="test-shop",
        access_token="shpat_test",
        base_url=BASE_URL,
        webhook_path=WEBHOOK_PATH,
    )


@pytest.fixture()
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture()
def registry(host: RecordingHost) -> EventRegistry:
    return EventRegistry("conn1", WEBHOOK_PATH, host=host, delegate=object())


@pytest.fixture()
def fake_client() -> FakeSubscriptionClient:
    return FakeSubscriptionClient()


@pytest.fixture()
def client_factory() -> type[FakeSubscriptionClient]:
    return FakeSubscriptionClient


@pytest.fixture()
def subscription_factory():
    return make_subscription
