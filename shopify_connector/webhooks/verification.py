"""Shopify webhook signature verification — constant-time HMAC.

Shopify sends X-Shopify-Hmac-Sha256: base64(HMAC-SHA256(app secret, raw body)).
Verification is only enforced when a webhook secret is configured.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Mapping

from shopify_connector.errors import WebhookVerificationError

HMAC_HEADER = "x-shopify-hmac-sha256"


def compute_signature(secret: str, body: bytes) -> str:
    """Base64 HMAC-SHA256 of *body*, as Shopify computes it."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_shopify(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Return True if *signature_header* is a valid signature of *body*."""
    if not secret or not signature_header:
        return False
    return hmac.compare_digest(compute_signature(secret, body), signature_header)


def verify_request(secret: str, body: bytes, headers: Mapping[str, str]) -> None:
    """Raise WebhookVerificationError unless the delivery is signed correctly.

    A no-op when *secret* is empty.
    """
    if not secret:
        return
    lowered = {k.lower(): v for k, v in headers.items()}
    if not verify_shopify(secret, body, lowered.get(HMAC_HEADER)):
        raise WebhookVerificationError("Invalid Shopify webhook signature")
