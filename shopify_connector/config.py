"""Shopify connector configuration."""

from __future__ import annotations

from pydantic_settings import BaseSettings

DEFAULT_WEBHOOK_PATH = "/reshuffle-shopify-connector/webhook"
DEFAULT_API_VERSION = "2025-01"


class Settings(BaseSettings):
    """Environment-driven settings for one connector instance."""

    # Admin API credentials
    shop_name: str = ""
    access_token: str = ""
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = 30.0

    # Webhook callback (base_url is only required once an event is declared)
    base_url: str | None = None
    webhook_path: str = DEFAULT_WEBHOOK_PATH
    webhook_name: str = ""  # passthrough, not used for matching
    webhook_secret: str = ""  # empty = skip inbound HMAC verification

    # Raise on start if any topic failed to register
    strict_registration: bool = False

    model_config = {"env_prefix": "SHOPIFY_", "env_file": ".env", "extra": "ignore"}

    @property
    def admin_url(self) -> str:
        """Admin API origin for the configured shop."""
        shop = self.shop_name.strip().rstrip("/")
        for scheme in ("https://", "http://"):
            shop = shop.removeprefix(scheme)
        if "." not in shop:
            shop = f"{shop}.myshopify.com"
        return f"https://{shop}"

    @property
    def resolved_webhook_path(self) -> str:
        return self.webhook_path or DEFAULT_WEBHOOK_PATH
