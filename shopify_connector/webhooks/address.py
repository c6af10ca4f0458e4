"""Callback address for webhook subscriptions."""

from __future__ import annotations

import re
from dataclasses import dataclass

from shopify_connector.config import DEFAULT_WEBHOOK_PATH
from shopify_connector.errors import InvalidConfiguration

# https origin: dot-separated labels, optional port, optional trailing slash
_ORIGIN_RE = re.compile(r"^(https://[\w-]+(?:\.[\w-]+)*(?::\d{1,5})?)/?$", re.ASCII)


def validate_base_url(url: object) -> str:
    """Return the normalized https origin, or raise InvalidConfiguration."""
    if not isinstance(url, str):
        raise InvalidConfiguration(f"Invalid url: {url}", option="base_url")
    match = _ORIGIN_RE.match(url)
    if not match:
        raise InvalidConfiguration(f"Invalid url: {url}", option="base_url")
    return match.group(1)


@dataclass(frozen=True)
class CallbackAddress:
    """Base origin + webhook path. Validation happens on ``url``."""

    base_url: str | None
    path: str = DEFAULT_WEBHOOK_PATH

    @property
    def url(self) -> str:
        return validate_base_url(self.base_url) + (self.path or DEFAULT_WEBHOOK_PATH)

    def __str__(self) -> str:
        return f"{self.base_url}{self.path}"
