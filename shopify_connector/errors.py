"""Connector error taxonomy.

- InvalidConfiguration: bad settings (malformed base URL, path clash). Fatal at startup.
- RemoteListFailure: listing webhook subscriptions failed. Fatal to reconciliation.
- RemoteCreateFailure: a subscription could not be created. Non-fatal per topic
  unless the caller escalates the reconciliation report.
- HandlerFailure: a local handler raised during dispatch. Propagates to the HTTP layer.
- WebhookVerificationError: inbound HMAC signature mismatch.
"""

from __future__ import annotations


class ConnectorError(Exception):
    """Base class for all connector errors."""


class InvalidConfiguration(ConnectorError):
    """Raised when connector settings cannot be used."""

    def __init__(self, message: str, *, option: str = ""):
        self.option = option
        super().__init__(message)


class RemoteListFailure(ConnectorError):
    """Raised when the existing webhook subscriptions cannot be listed."""

    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to list webhook subscriptions: {reason}")


class RemoteCreateFailure(ConnectorError):
    """Raised when one or more webhook subscriptions could not be created."""

    def __init__(self, topics: list[str], reason: str, status_code: int | None = None):
        self.topics = list(topics)
        self.reason = reason
        self.status_code = status_code
        super().__init__(
            f"Failed to register webhook(s) for {', '.join(self.topics)}: {reason}"
        )


class HandlerFailure(ConnectorError):
    """Raised when a handler fails while processing an inbound delivery."""

    def __init__(self, event_id: str, topic: str):
        self.event_id = event_id
        self.topic = topic
        super().__init__(f"Handler for event {event_id} failed (topic: {topic})")


class WebhookVerificationError(ConnectorError):
    """Raised when an inbound delivery fails signature verification."""
