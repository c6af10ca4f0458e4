"""Webhook HTTP handlers: the FastAPI route that forwards POSTs to an HTTP delegate.

The route hands the raw request to its delegate (the connector), which
verifies, parses and dispatches it. This module only shapes the response:

- 401 on signature failure
- 202 when the body could not be parsed (nothing dispatched)
- 200 once every matching handler has run
- 500 when a handler failed, so Shopify redelivers later

Error details are never returned to the caller. Every delivery is audit-logged.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shopify_connector.errors import HandlerFailure, WebhookVerificationError
from shopify_connector.webhooks.dispatcher import TOPIC_HEADER, WEBHOOK_ID_HEADER

logger = logging.getLogger(__name__)


class HTTPDelegate(Protocol):
    async def handle(self, request: Request) -> bool:
        ...


def _log_webhook(topic: str, webhook_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT topic=%s id=%s status=%s",
        topic or "unknown",
        webhook_id or "unknown",
        status,
    )


async def handle_webhook(request: Request, delegate: HTTPDelegate) -> JSONResponse:
    start = time.perf_counter()
    topic = request.headers.get(TOPIC_HEADER, "")
    webhook_id = request.headers.get(WEBHOOK_ID_HEADER, "")

    try:
        handled = await delegate.handle(request)
    except WebhookVerificationError:
        _log_webhook(topic, webhook_id, "signature_failed")
        return JSONResponse({"status": "unauthorized"}, status_code=401)
    except HandlerFailure as e:
        logger.exception("Handler failed for webhook %s (event %s)", topic, e.event_id)
        _log_webhook(topic, webhook_id, "handler_failed")
        return JSONResponse({"status": "error"}, status_code=500)

    if not handled:
        _log_webhook(topic, webhook_id, "skipped")
        return JSONResponse({"status": "received"}, status_code=202)

    _log_webhook(topic, webhook_id, "dispatched")
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug("Webhook processed in %.1fms: %s", elapsed_ms, topic)
    return JSONResponse({"status": "received", "handled": True}, status_code=200)


def register_webhook_route(app: FastAPI, path: str, delegate: HTTPDelegate) -> None:
    """Mount a POST route on *path* that forwards deliveries to *delegate*."""

    async def shopify_webhook(request: Request) -> JSONResponse:
        return await handle_webhook(request, delegate)

    app.add_api_route(path, shopify_webhook, methods=["POST"], include_in_schema=False)
    logger.info("Webhook route registered: POST %s", path)
