"""farmchat/urls.py

Base-URL resolution for the same-origin collaborator APIs.
"""

from __future__ import annotations

# Standard Library
from collections.abc import Mapping

from farmchat.config import ChatSettings


def resolve_base_url(headers: Mapping[str, str], settings: ChatSettings) -> str:
    """Work out the origin the collaborator APIs live on.

    In production the public origin comes from the proxy headers
    (``x-forwarded-proto``, defaulting to ``https``, and ``host``). Everywhere
    else, or when no host header is present, the configured base URL is used.

    Args:
        headers: Inbound request headers (case-insensitive mapping expected).
        settings: Gateway settings.

    Returns:
        Origin without a trailing slash, e.g. ``https://shop.example.com``.
    """
    if settings.is_production:
        host = headers.get("host")
        if host:
            protocol = headers.get("x-forwarded-proto") or "https"
            return f"{protocol}://{host}"
    return settings.app_base_url.rstrip("/")


def api_url(base_url: str, endpoint: str) -> str:
    """Join an origin and an endpoint path with exactly one slash."""
    clean = endpoint if endpoint.startswith("/") else f"/{endpoint}"
    return f"{base_url.rstrip('/')}{clean}"
