"""tests/test_config_urls.py

Unit tests for settings (farmchat/config.py) and base-URL resolution
(farmchat/urls.py).
"""

from __future__ import annotations

# Third-Party Libraries
import httpx
import pytest

# Local Modules
from farmchat.config import ChatSettings
from farmchat.urls import api_url, resolve_base_url


def make_settings(**overrides: object) -> ChatSettings:
    values: dict[str, object] = {
        "_env_file": None,
        "google_generative_ai_api_key": "",
        "google_ai_api_key": "",
    }
    values.update(overrides)
    return ChatSettings(**values)


class TestChatSettings:
    """Credential fallback and environment loading."""

    def test_primary_credential_wins(self) -> None:
        settings = make_settings(google_generative_ai_api_key="primary", google_ai_api_key="legacy")
        assert settings.api_key == "primary"

    def test_legacy_credential_fallback(self) -> None:
        assert make_settings(google_ai_api_key="legacy").api_key == "legacy"

    def test_no_credential(self) -> None:
        assert make_settings().api_key == ""

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "from-env")
        monkeypatch.setenv("NEXTAUTH_URL", "https://shop.example.in/")
        monkeypatch.setenv("MAX_TOOL_STEPS", "2")
        settings = ChatSettings(_env_file=None)
        assert settings.api_key == "from-env"
        assert settings.app_base_url == "https://shop.example.in/"
        assert settings.max_tool_steps == 2

    def test_defaults(self) -> None:
        settings = make_settings()
        assert settings.tool_timeout_seconds == 10.0
        assert settings.max_tool_steps == 5
        assert settings.default_location == "India"
        assert settings.is_production is False

    def test_production_flag_is_case_insensitive(self) -> None:
        assert make_settings(app_env="Production").is_production is True


class TestResolveBaseUrl:
    """Origin of the collaborator APIs."""

    def test_development_uses_configured_url(self) -> None:
        settings = make_settings(app_base_url="http://localhost:3000/")
        headers = httpx.Headers({"host": "shop.example.in"})
        assert resolve_base_url(headers, settings) == "http://localhost:3000"

    def test_production_uses_forwarded_headers(self) -> None:
        settings = make_settings(app_env="production")
        headers = httpx.Headers({"Host": "shop.example.in", "X-Forwarded-Proto": "http"})
        assert resolve_base_url(headers, settings) == "http://shop.example.in"

    def test_production_defaults_to_https(self) -> None:
        settings = make_settings(app_env="production")
        headers = httpx.Headers({"host": "shop.example.in"})
        assert resolve_base_url(headers, settings) == "https://shop.example.in"

    def test_production_without_host_falls_back(self) -> None:
        settings = make_settings(app_env="production", app_base_url="https://fallback.example.in")
        assert resolve_base_url(httpx.Headers(), settings) == "https://fallback.example.in"


class TestApiUrl:
    @pytest.mark.parametrize(
        "base, endpoint",
        [
            ("http://x.test", "/api/ai/products"),
            ("http://x.test/", "/api/ai/products"),
            ("http://x.test", "api/ai/products"),
        ],
    )
    def test_single_slash(self, base: str, endpoint: str) -> None:
        assert api_url(base, endpoint) == "http://x.test/api/ai/products"
