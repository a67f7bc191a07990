"""farmchat/errors.py

Error taxonomy for the chat gateway.

``InvalidInputError`` and ``ServiceUnavailableError`` end a turn before the
model is invoked and map straight to HTTP statuses. The two tool errors never
leave the tool executor: they are folded into structured results so the model
can narrate the failure.
"""

from __future__ import annotations


class FarmChatError(Exception):
    """Base class for every error raised by this package."""

    status_code: int = 500


class InvalidInputError(FarmChatError):
    """The request carried no usable message."""

    status_code = 400


class ServiceUnavailableError(FarmChatError):
    """The upstream model credential is not configured."""

    status_code = 503


class ToolArgumentError(FarmChatError):
    """Model-issued tool arguments failed schema validation."""

    def __init__(self, tool_name: str, reason: str) -> None:
        super().__init__(f"Invalid arguments for {tool_name}: {reason}")
        self.tool_name = tool_name
        self.reason = reason


class ToolExecutionError(FarmChatError):
    """A collaborator API call failed or returned a non-2xx status."""

    def __init__(self, tool_name: str, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.tool_name = tool_name
        self.status = status
