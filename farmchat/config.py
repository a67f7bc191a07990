"""farmchat/config.py

Runtime configuration for the smart chat gateway.

Settings are read once (environment variables / ``.env``) and injected into
the app at construction time. Nothing downstream calls ``os.getenv``
mid-request.
"""

from __future__ import annotations

# Third-Party Libraries
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChatSettings(BaseSettings):
    """Gateway configuration loaded from environment variables / .env file.

    Attributes:
        google_generative_ai_api_key: Primary Gemini credential.
        google_ai_api_key: Legacy credential name, used when the primary is unset.
        gemini_model: Gemini model name.
        max_output_tokens: Upper bound on generated tokens per model step.
        temperature: Sampling temperature.
        app_env: ``production`` switches base-URL resolution to forwarded headers.
        app_base_url: Base URL of the marketplace collaborator APIs.
        default_location: Region used when the caller has no location.
        tool_timeout_seconds: Timeout applied to every collaborator call.
        max_tool_steps: Maximum model steps that may issue tool calls in one turn.
        api_host: Bind address for ``run_api``.
        api_port: Bind port for ``run_api``.
        log_level: Root log level for the server entry point.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    google_generative_ai_api_key: str = Field(
        "",
        validation_alias=AliasChoices(
            "GOOGLE_GENERATIVE_AI_API_KEY", "google_generative_ai_api_key"
        ),
    )
    google_ai_api_key: str = Field(
        "",
        validation_alias=AliasChoices("GOOGLE_AI_API_KEY", "google_ai_api_key"),
    )
    gemini_model: str = Field("gemini-1.5-flash", description="Gemini model name.")
    max_output_tokens: int = Field(1000, ge=1)
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    app_env: str = Field("development", description="development | production")
    app_base_url: str = Field(
        "http://localhost:3000",
        validation_alias=AliasChoices("NEXTAUTH_URL", "app_base_url"),
    )
    default_location: str = Field("India")
    tool_timeout_seconds: float = Field(
        10.0,
        gt=0,
        description="Single-attempt timeout for each collaborator API call.",
    )
    max_tool_steps: int = Field(
        5,
        ge=1,
        description="Model steps allowed to issue tool calls before the turn is closed.",
    )
    api_host: str = Field("0.0.0.0")
    api_port: int = Field(8300)
    log_level: str = Field("INFO")

    @property
    def api_key(self) -> str:
        """Return the first configured Gemini credential, or ``""``."""
        return self.google_generative_ai_api_key or self.google_ai_api_key

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"
