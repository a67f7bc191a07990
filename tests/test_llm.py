"""tests/test_llm.py

Unit tests for the model adapter (farmchat/llm.py).

The Gemini SDK is patched out; streamed chunks are faked with
``SimpleNamespace`` objects shaped like the SDK's response chunks.
"""

from __future__ import annotations

# Standard Library
import asyncio
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

# Local Modules
from farmchat.config import ChatSettings
from farmchat.llm import (
    FunctionCall,
    GeminiChatModel,
    TextDelta,
    events_from_chunk,
    function_responses,
    history_contents,
    model_turn,
)
from farmchat.messages import ChatMessage


def chunk(*parts: Any) -> SimpleNamespace:
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def text_part(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text, function_call=None)


def call_part(name: str, args: dict[str, Any]) -> SimpleNamespace:
    return SimpleNamespace(text="", function_call=SimpleNamespace(name=name, args=args))


class TestContentBuilders:
    """Gemini content dicts."""

    def test_history_maps_assistant_to_model(self) -> None:
        contents = history_contents(
            [
                ChatMessage(role="user", content="hi"),
                ChatMessage(role="assistant", content="Namaste!"),
            ]
        )
        assert contents == [
            {"role": "user", "parts": [{"text": "hi"}]},
            {"role": "model", "parts": [{"text": "Namaste!"}]},
        ]

    def test_model_turn_keeps_text_and_calls(self) -> None:
        content = model_turn("Let me check. ", [FunctionCall("track_order", {"searchTerm": "abc"})])
        assert content == {
            "role": "model",
            "parts": [
                {"text": "Let me check. "},
                {"function_call": {"name": "track_order", "args": {"searchTerm": "abc"}}},
            ],
        }

    def test_model_turn_without_text(self) -> None:
        content = model_turn("", [FunctionCall("get_payment_info", {"question": "upi"})])
        assert content["parts"] == [
            {"function_call": {"name": "get_payment_info", "args": {"question": "upi"}}}
        ]

    def test_function_responses_in_order(self) -> None:
        content = function_responses([("a", {"success": True}), ("b", {"success": False})])
        assert content["role"] == "user"
        assert [p["function_response"]["name"] for p in content["parts"]] == ["a", "b"]


class TestEventsFromChunk:
    """Splitting streamed chunks into events."""

    def test_text_and_call(self) -> None:
        events = list(
            events_from_chunk(
                chunk(text_part("Ordering now. "), call_part("instant_order", {"itemName": "tomatoes", "quantity": 2.0}))
            )
        )
        assert events == [
            TextDelta("Ordering now. "),
            FunctionCall("instant_order", {"itemName": "tomatoes", "quantity": 2.0}),
        ]

    def test_nested_args_become_plain(self) -> None:
        events = list(events_from_chunk(chunk(call_part("x", {"tags": ("a", "b"), "n": {"k": 1}}))))
        assert events == [FunctionCall("x", {"tags": ["a", "b"], "n": {"k": 1}})]

    def test_empty_parts_skipped(self) -> None:
        assert list(events_from_chunk(chunk(text_part("")))) == []
        assert list(events_from_chunk(SimpleNamespace(candidates=[]))) == []
        assert list(events_from_chunk(SimpleNamespace())) == []

    def test_call_without_name_is_text(self) -> None:
        part = SimpleNamespace(text="hello", function_call=SimpleNamespace(name="", args={}))
        assert list(events_from_chunk(chunk(part))) == [TextDelta("hello")]


class TestGeminiChatModel:
    """SDK wiring, with ``google.generativeai`` patched."""

    def test_model_configured_from_settings(self, settings: ChatSettings) -> None:
        with patch("farmchat.llm.genai") as genai:
            GeminiChatModel(settings, "SYSTEM")

        genai.configure.assert_called_once_with(api_key="test-key")
        kwargs = genai.GenerativeModel.call_args.kwargs
        assert kwargs["model_name"] == "gemini-1.5-flash"
        assert kwargs["system_instruction"] == "SYSTEM"
        declarations = kwargs["tools"][0]["function_declarations"]
        assert len(declarations) == 7
        genai.GenerationConfig.assert_called_once_with(max_output_tokens=1000, temperature=0.7)

    def test_stream_yields_events(self, settings: ChatSettings) -> None:
        async def _chunks() -> Any:
            yield chunk(text_part("Fresh okra "))
            yield chunk(text_part("is ₹40/kg."))

        with patch("farmchat.llm.genai") as genai:
            backend = MagicMock()
            backend.generate_content_async = AsyncMock(return_value=_chunks())
            genai.GenerativeModel.return_value = backend
            model = GeminiChatModel(settings, "SYSTEM")

            async def _collect() -> list[Any]:
                return [e async for e in model.stream([{"role": "user", "parts": [{"text": "okra?"}]}])]

            events = asyncio.run(_collect())

        assert events == [TextDelta("Fresh okra "), TextDelta("is ₹40/kg.")]
        args, kwargs = backend.generate_content_async.call_args
        assert args[0] == [{"role": "user", "parts": [{"text": "okra?"}]}]
        assert kwargs == {"stream": True}
