"""tests/conftest.py

Pytest configuration and shared fixtures for the farmchat test suite.

The model is replaced by a scripted fake and the marketplace collaborator
APIs by an ``httpx.MockTransport``, so every test runs offline.
"""

from __future__ import annotations

# Standard Library
from collections.abc import Callable
from typing import Any

# Third-Party Libraries
import httpx
import pytest

# Local Modules
from farmchat.config import ChatSettings
from tests.helpers import CollaboratorStub


@pytest.fixture
def settings() -> ChatSettings:
    """Settings with a credential and a fixed collaborator origin.

    Returns:
        A ChatSettings instance isolated from any local .env file.
    """
    return ChatSettings(
        _env_file=None,
        google_generative_ai_api_key="test-key",
        google_ai_api_key="",
        app_base_url="http://marketplace.test",
        app_env="development",
        default_location="India",
        tool_timeout_seconds=5.0,
        max_tool_steps=3,
    )


@pytest.fixture
def unconfigured_settings() -> ChatSettings:
    """Settings with no Gemini credential at all."""
    return ChatSettings(
        _env_file=None,
        google_generative_ai_api_key="",
        google_ai_api_key="",
        app_base_url="http://marketplace.test",
    )


@pytest.fixture
def collaborators() -> CollaboratorStub:
    """Collaborator API stub with no routes; tests add what they need."""
    return CollaboratorStub()


@pytest.fixture
def make_client(collaborators: CollaboratorStub) -> Callable[[], httpx.AsyncClient]:
    """Factory for AsyncClients wired to the collaborator stub.

    Clients are created lazily so each ``asyncio.run`` gets a fresh one.
    """

    def _make() -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(collaborators))

    return _make


@pytest.fixture
def sample_user() -> dict[str, Any]:
    """An authenticated caller as sent by the marketplace frontend."""
    return {
        "id": "user-42",
        "email": "ravi@example.in",
        "role": "buyer",
        "whatsapp_number": "9876543210",
        "location": "Pune, Maharashtra",
    }
