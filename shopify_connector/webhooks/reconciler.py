"""Webhook reconciliation — make sure every declared topic has a subscription.

Runs once per connector start:
1. No declared topics -> nothing happens (no API calls at all)
2. Validate the callback base URL
3. List existing subscriptions with a single call
4. Per topic: reuse a subscription with the same address AND topic, or create one

Contract:
- Append-only: existing subscriptions are never updated or deleted
- Matching uses the one snapshot from step 3, it is not re-fetched per topic
- A failed list aborts the whole run (exception propagates)
- A failed create is recorded in the report and the remaining topics continue
- No retries here; transport retries belong to the API client
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from shopify_connector.client import Subscription, SubscriptionClient
from shopify_connector.errors import RemoteCreateFailure
from shopify_connector.webhooks.address import CallbackAddress

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """What happened to one desired topic."""
    REUSED = "reused"
    CREATED = "created"
    CREATE_FAILED = "create_failed"


@dataclass
class TopicOutcome:
    """Reconciliation result for a single topic."""
    topic: str
    status: OutcomeStatus
    subscription: Subscription | None = None
    reason: str = ""


@dataclass
class ReconciliationReport:
    """Aggregated per-topic outcomes of one reconciliation run."""
    address: str = ""
    outcomes: list[TopicOutcome] = field(default_factory=list)

    def _topics(self, status: OutcomeStatus) -> list[str]:
        return [o.topic for o in self.outcomes if o.status == status]

    @property
    def reused(self) -> list[str]:
        return self._topics(OutcomeStatus.REUSED)

    @property
    def created(self) -> list[str]:
        return self._topics(OutcomeStatus.CREATED)

    @property
    def failed(self) -> list[str]:
        return self._topics(OutcomeStatus.CREATE_FAILED)

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Escalate any create failure to a RemoteCreateFailure."""
        failed = [o for o in self.outcomes if o.status == OutcomeStatus.CREATE_FAILED]
        if failed:
            reasons = "; ".join(f"{o.topic}: {o.reason}" for o in failed)
            raise RemoteCreateFailure([o.topic for o in failed], reasons)

    def as_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "reused": self.reused,
            "created": self.created,
            "failed": {o.topic: o.reason for o in self.outcomes if o.status == OutcomeStatus.CREATE_FAILED},
        }


class WebhookReconciler:
    """Registers missing webhook subscriptions through a SubscriptionClient."""

    def __init__(self, client: SubscriptionClient) -> None:
        self._client = client

    async def reconcile(
        self,
        desired_topics: Iterable[str],
        address: CallbackAddress,
    ) -> ReconciliationReport:
        topics = sorted(set(desired_topics))
        if not topics:
            return ReconciliationReport()

        url = address.url  # raises InvalidConfiguration before any remote call
        existing = await self._client.list_subscriptions()

        report = ReconciliationReport(address=url)
        for topic in topics:
            report.outcomes.append(await self._reconcile_topic(topic, url, existing))
        return report

    async def _reconcile_topic(
        self,
        topic: str,
        url: str,
        existing: list[Subscription],
    ) -> TopicOutcome:
        match = next((s for s in existing if s.matches(url, topic)), None)
        if match is not None:
            logger.info(
                "Shopify - reusing existing webhook (topic: %s, address: %s)",
                match.topic,
                match.address,
            )
            return TopicOutcome(topic, OutcomeStatus.REUSED, subscription=match)

        try:
            created = await self._client.create_subscription(url, topic)
        except Exception as e:
            logger.exception(
                "Shopify - webhook registration failure (topic: %s, address: %s)",
                topic,
                url,
            )
            return TopicOutcome(topic, OutcomeStatus.CREATE_FAILED, reason=str(e))

        if created.created_at is None:
            logger.error(
                "Shopify - webhook registration failure (topic: %s, address: %s, errors: %s)",
                created.topic,
                created.address,
                created.errors,
            )
            return TopicOutcome(
                topic,
                OutcomeStatus.CREATE_FAILED,
                subscription=created,
                reason=_describe_errors(created.errors),
            )

        logger.info(
            "Shopify - webhook registered successfully (topic: %s, address: %s)",
            created.topic,
            created.address,
        )
        return TopicOutcome(topic, OutcomeStatus.CREATED, subscription=created)


def _describe_errors(errors: Any) -> str:
    if not errors:
        return "no creation timestamp returned"
    if isinstance(errors, dict):
        return "; ".join(
            f"{key} {' '.join(map(str, msgs)) if isinstance(msgs, list) else msgs}"
            for key, msgs in errors.items()
        )
    return str(errors)
