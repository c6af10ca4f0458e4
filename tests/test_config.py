"""Tests for environment-driven connector settings."""

from __future__ import annotations

import pytest

from shopify_connector.config import DEFAULT_WEBHOOK_PATH, Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for key in ("SHOPIFY_BASE_URL", "SHOPIFY_WEBHOOK_PATH", "SHOPIFY_WEBHOOK_SECRET"):
            monkeypatch.delenv(key, raising=False)
        s = Settings(_env_file=None)
        assert s.base_url is None
        assert s.webhook_path == DEFAULT_WEBHOOK_PATH
        assert s.webhook_secret == ""
        assert s.strict_registration is False

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_SHOP_NAME", "acme")
        monkeypatch.setenv("SHOPIFY_BASE_URL", "https://hooks.acme.dev")
        monkeypatch.setenv("SHOPIFY_WEBHOOK_PATH", "/shopify")
        monkeypatch.setenv("SHOPIFY_STRICT_REGISTRATION", "true")
        s = Settings(_env_file=None)
        assert s.base_url == "https://hooks.acme.dev"
        assert s.webhook_path == "/shopify"
        assert s.strict_registration is True
        assert s.admin_url == "https://acme.myshopify.com"

    @pytest.mark.parametrize(
        "shop,expected",
        [
            ("acme", "https://acme.myshopify.com"),
            ("acme.myshopify.com", "https://acme.myshopify.com"),
            ("https://acme.myshopify.com/", "https://acme.myshopify.com"),
            ("http://acme.myshopify.com", "https://acme.myshopify.com"),
        ],
    )
    def test_admin_url(self, shop, expected):
        assert Settings(_env_file=None, shop_name=shop).admin_url == expected

    def test_empty_webhook_path_falls_back(self):
        s = Settings(_env_file=None, webhook_path="")
        assert s.resolved_webhook_path == DEFAULT_WEBHOOK_PATH
