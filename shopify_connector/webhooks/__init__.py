"""Shopify webhooks — subscription reconciliation and inbound dispatch.

Declared topics are registered with Shopify on startup (append-only), and
each inbound delivery is signature-verified and fanned out to its handlers.
"""
