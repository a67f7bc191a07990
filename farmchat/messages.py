"""farmchat/messages.py

Request-scoped data model: chat messages, caller identity and the inbound
request body.
"""

from __future__ import annotations

# Standard Library
from typing import Final, Literal

# Third-Party Libraries
from pydantic import BaseModel, ConfigDict, Field, field_validator

from farmchat.errors import InvalidInputError

CHAT_ROLES: Final[frozenset[str]] = frozenset({"user", "assistant"})


def _known_role(role: object) -> bool:
    return isinstance(role, str) and role in CHAT_ROLES


class ChatMessage(BaseModel):
    """One conversation message as sent by the client."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant"] = "user"
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: object) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def is_blank(self) -> bool:
        return not self.content.strip()


class CallerContext(BaseModel):
    """Identity attributes of the caller, fixed for the duration of a turn."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str | None = None
    email: str | None = None
    role: str | None = None
    phone: str | None = None
    whatsapp_number: str | None = None
    location: str | None = None

    @field_validator("id", "phone", "whatsapp_number", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> str | None:
        # Auth providers hand out numeric ids and phone numbers.
        if value is None or value == "":
            return None
        return str(value)

    @property
    def contact_phone(self) -> str | None:
        return self.whatsapp_number or self.phone

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id)


class ChatRequest(BaseModel):
    """Body of ``POST /api/ai/smart-chat-enhanced``."""

    model_config = ConfigDict(extra="ignore")

    messages: list[ChatMessage] = Field(default_factory=list)
    user: CallerContext | None = None

    @field_validator("messages", mode="before")
    @classmethod
    def _drop_unusable(cls, value: object) -> object:
        # Non-object entries and roles other than user/assistant (e.g. system)
        # are skipped rather than failing the whole turn.
        if value is None:
            return []
        if isinstance(value, list):
            return [
                m
                for m in value
                if isinstance(m, dict) and _known_role(m.get("role", "user"))
            ]
        return value


def valid_messages(messages: list[ChatMessage]) -> list[ChatMessage]:
    """Return the messages with non-blank content, in order.

    Args:
        messages: Messages as received from the client.

    Returns:
        The filtered list.

    Raises:
        InvalidInputError: If no message survives the filter.
    """
    kept = [m for m in messages if not m.is_blank()]
    if not kept:
        raise InvalidInputError("No valid messages provided")
    return kept
