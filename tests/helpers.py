"""tests/helpers.py

Test doubles shared across the suite: a scripted model, a model factory
recorder and a collaborator API stub for ``httpx.MockTransport``.
"""

from __future__ import annotations

# Standard Library
import copy
import json
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

# Third-Party Libraries
import httpx

# Local Modules
from farmchat.config import ChatSettings
from farmchat.llm import Content, FunctionCall, ModelEvent, TextDelta

Handler = Callable[[httpx.Request], httpx.Response]

class ScriptedModel:
    """Fake ChatModel that replays one list of events per model step.

    Attributes:
        steps: Remaining scripted steps.
        seen: Deep copies of the contents passed to each step.
    """

    def __init__(self, steps: Sequence[Sequence[ModelEvent]]) -> None:
        self.steps: list[list[ModelEvent]] = [list(s) for s in steps]
        self.seen: list[list[Content]] = []

    async def stream(self, contents: Sequence[Content]) -> AsyncIterator[ModelEvent]:
        self.seen.append(copy.deepcopy(list(contents)))
        events = self.steps.pop(0) if self.steps else [TextDelta("Happy farming!")]
        for event in events:
            yield event


class ModelRecorder:
    """ModelFactory double that hands out a prepared ScriptedModel.

    Attributes:
        model: The model returned on every call.
        prompts: System prompts the factory was called with.
    """

    def __init__(self, model: ScriptedModel | None = None) -> None:
        self.model = model or ScriptedModel([[TextDelta("Happy farming!")]])
        self.prompts: list[str] = []

    def __call__(self, settings: ChatSettings, system_prompt: str) -> ScriptedModel:
        self.prompts.append(system_prompt)
        return self.model


class CollaboratorStub:
    """Routes requests to canned responses and records every request.

    Unknown routes answer 404 so an unexpected call shows up as a tool failure.
    """

    def __init__(self, routes: dict[tuple[str, str], httpx.Response | Handler] | None = None) -> None:
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "error": "not found"})
        if callable(route):
            return route(request)
        return route

    def json_body(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.requests[index].content)


def text_step(*chunks: str) -> list[ModelEvent]:
    """Build a model step that only produces text."""
    return [TextDelta(c) for c in chunks]


def call_step(name: str, **args: Any) -> list[ModelEvent]:
    """Build a model step that requests a single tool call."""
    return [FunctionCall(name=name, args=args)]

