"""farmchat/llm.py

Language-model adapter.

The orchestration loop talks to a :class:`ChatModel`: anything that takes the
conversation contents and streams back text deltas and function calls. The
production implementation wraps Gemini via ``google.generativeai``; tests
plug in a scripted fake.

Contents use Gemini's dict shape throughout::

    {"role": "user" | "model", "parts": [{"text": ...}
                                         | {"function_call": {...}}
                                         | {"function_response": {...}}]}
"""

from __future__ import annotations

# Standard Library
import dataclasses
import logging
from collections.abc import AsyncIterator, Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Protocol

# Third-Party Libraries
import google.generativeai as genai

from farmchat.config import ChatSettings
from farmchat.messages import ChatMessage
from farmchat.tools.registry import function_declarations

logger = logging.getLogger("farmchat.llm")

Content = dict[str, Any]


@dataclasses.dataclass(frozen=True, slots=True)
class TextDelta:
    """A fragment of assistant text."""

    text: str


@dataclasses.dataclass(frozen=True, slots=True)
class FunctionCall:
    """A tool invocation requested by the model."""

    name: str
    args: dict[str, Any]


ModelEvent = TextDelta | FunctionCall


class ChatModel(Protocol):
    """Streaming chat model with tools already bound."""

    def stream(self, contents: Sequence[Content]) -> AsyncIterator[ModelEvent]:
        """Yield text deltas and function calls for one model step."""
        ...


ModelFactory = Callable[[ChatSettings, str], ChatModel]


# ---------------------------------------------------------------------------
# Content builders
# ---------------------------------------------------------------------------


def history_contents(messages: Iterable[ChatMessage]) -> list[Content]:
    """Convert client messages into Gemini contents (assistant → model)."""
    return [
        {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
        for m in messages
    ]


def model_turn(text: str, calls: Sequence[FunctionCall]) -> Content:
    """Record what the model produced in one step: its text and its calls."""
    parts: list[dict[str, Any]] = []
    if text:
        parts.append({"text": text})
    parts.extend({"function_call": {"name": c.name, "args": c.args}} for c in calls)
    return {"role": "model", "parts": parts}


def function_responses(results: Sequence[tuple[str, dict[str, Any]]]) -> Content:
    """Wrap tool results so the model sees them on its next step."""
    return {
        "role": "user",
        "parts": [
            {"function_response": {"name": name, "response": result}}
            for name, result in results
        ],
    }


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


def _to_plain(value: Any) -> Any:
    """Turn proto map/repeated composites into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (str, bytes)):
        return value
    if isinstance(value, Iterable):
        return [_to_plain(v) for v in value]
    return value


def events_from_chunk(chunk: Any) -> Iterator[ModelEvent]:
    """Split one streamed Gemini chunk into text deltas and function calls."""
    for candidate in getattr(chunk, "candidates", None) or ():
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or ():
            call = getattr(part, "function_call", None)
            if call is not None and getattr(call, "name", ""):
                yield FunctionCall(name=call.name, args=_to_plain(call.args or {}))
                continue
            text = getattr(part, "text", "")
            if text:
                yield TextDelta(text)


class GeminiChatModel:
    """:class:`ChatModel` backed by ``google.generativeai``.

    Args:
        settings: Gateway settings (credential, model name, generation limits).
        system_instruction: System prompt for the turn.
    """

    def __init__(self, settings: ChatSettings, system_instruction: str) -> None:
        self.name = settings.gemini_model
        # The SDK keeps the credential process-wide; the value always comes
        # from the injected settings object.
        genai.configure(api_key=settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=settings.gemini_model,
            system_instruction=system_instruction,
            tools=[{"function_declarations": function_declarations()}],
            generation_config=genai.GenerationConfig(
                max_output_tokens=settings.max_output_tokens,
                temperature=settings.temperature,
            ),
        )

    async def stream(self, contents: Sequence[Content]) -> AsyncIterator[ModelEvent]:
        logger.debug("Gemini step: model=%s contents=%d", self.name, len(contents))
        response = await self._model.generate_content_async(list(contents), stream=True)
        async for chunk in response:
            for event in events_from_chunk(chunk):
                yield event


def gemini_model_factory(settings: ChatSettings, system_instruction: str) -> ChatModel:
    """Default :data:`ModelFactory`."""
    return GeminiChatModel(settings, system_instruction)
