"""farmchat/chat.py

Single-turn orchestration: message filtering, guardrail, prompt assembly,
the model/tool loop and text streaming.

Turn states::

    Received -> Filtering -> Rejected
                          -> Prompting -> ModelInvoked -> (ToolLoop -> ModelInvoked)* -> Streaming -> Done

``prepare_turn`` covers everything up to the first model call and is fully
synchronous, so the HTTP layer can map its failures to status codes before a
streamed response starts. ``stream_turn`` drives the model.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import logging
import random
from collections.abc import AsyncIterator
from typing import Final

# Third-Party Libraries
import httpx

from farmchat.config import ChatSettings
from farmchat.errors import ServiceUnavailableError
from farmchat.guardrails import (
    TopicClassification,
    analyze_message_topic,
    generate_rejection_message,
    validate_response,
)
from farmchat.llm import (
    ChatModel,
    FunctionCall,
    ModelFactory,
    TextDelta,
    function_responses,
    gemini_model_factory,
    history_contents,
    model_turn,
)
from farmchat.messages import CallerContext, ChatMessage, ChatRequest, valid_messages
from farmchat.prompts import build_system_prompt
from farmchat.tools.executor import ToolExecutor

logger = logging.getLogger("farmchat.chat")

EMPTY_REPLY: Final[str] = "I apologize, but I couldn't generate a response."
TOOL_LIMIT_REPLY: Final[str] = (
    "\n\nI wasn't able to finish looking that up just now. "
    "Could you rephrase or narrow down your request?"
)


@dataclasses.dataclass(frozen=True, slots=True)
class Rejection:
    """Terminal outcome for an off-topic turn."""

    content: str
    classification: TopicClassification


@dataclasses.dataclass(slots=True)
class AcceptedTurn:
    """Everything needed to run the model for one on-topic turn.

    Attributes:
        messages: Non-blank conversation messages, in order.
        caller: Caller identity, if the request carried one.
        system_prompt: Assembled system instruction.
        model: Model instance with the system prompt and tools bound.
        executor: Tool executor bound to this caller and base URL.
    """

    messages: list[ChatMessage]
    caller: CallerContext | None
    system_prompt: str
    model: ChatModel
    executor: ToolExecutor


TurnPlan = Rejection | AcceptedTurn


class SmartChatService:
    """Runs chat turns against the marketplace tools.

    The service holds no per-turn state; one instance serves concurrent
    requests.

    Args:
        settings: Gateway settings, injected once at construction.
        http_client: Shared client for collaborator API calls.
        model_factory: Builds a :class:`ChatModel` for a system prompt.
        rng: Random source for rejection replies.
    """

    def __init__(
        self,
        settings: ChatSettings,
        http_client: httpx.AsyncClient,
        model_factory: ModelFactory | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.http_client = http_client
        self.model_factory = model_factory or gemini_model_factory
        self._rng = rng or random.Random()

    def ensure_configured(self) -> None:
        """Raise :class:`ServiceUnavailableError` when no credential is set."""
        if not self.settings.api_key:
            logger.error("Google AI API key not found in configuration")
            raise ServiceUnavailableError("AI service not configured")

    def prepare_turn(self, request: ChatRequest, base_url: str) -> TurnPlan:
        """Filter, classify and set up a turn without calling the model.

        Args:
            request: Parsed request body.
            base_url: Origin of the collaborator APIs for this request.

        Returns:
            A :class:`Rejection` for off-topic input, else an :class:`AcceptedTurn`.

        Raises:
            ServiceUnavailableError: The model credential is missing.
            InvalidInputError: No message has non-blank content.
        """
        self.ensure_configured()

        caller = request.user
        logger.info(
            "Smart chat turn: messages=%d caller=%s",
            len(request.messages),
            caller.model_dump(exclude_none=True) if caller else {},
        )

        messages = valid_messages(request.messages)
        logger.info("Valid messages after filtering: %d", len(messages))

        last = messages[-1]
        if last.role == "user":
            topic = analyze_message_topic(last.content)
            logger.info(
                "Topic analysis: farming=%s farming_score=%d rejection_score=%d",
                topic.is_farming_related,
                topic.farming_score,
                topic.rejection_score,
            )
            if not topic.is_farming_related:
                content = generate_rejection_message(
                    last.content, topic.detected_topics, rng=self._rng
                )
                return Rejection(content=content, classification=topic)

        system_prompt = build_system_prompt(caller, self.settings.default_location)
        model = self.model_factory(self.settings, system_prompt)
        executor = ToolExecutor(
            self.http_client,
            base_url,
            caller,
            timeout=self.settings.tool_timeout_seconds,
        )
        return AcceptedTurn(
            messages=messages,
            caller=caller,
            system_prompt=system_prompt,
            model=model,
            executor=executor,
        )

    async def stream_turn(self, turn: AcceptedTurn) -> AsyncIterator[str]:
        """Run the model/tool loop, yielding assistant text as it arrives.

        Function calls gathered during one model step are executed in the
        order the model declared them, their results are fed back, and the
        model is invoked again. After ``max_tool_steps`` tool rounds a model
        step that still asks for tools ends the turn with a short apology.

        Args:
            turn: Plan returned by :meth:`prepare_turn`.

        Yields:
            Assistant text fragments.
        """
        contents = history_contents(turn.messages)
        produced: list[str] = []
        tool_rounds = 0

        while True:
            step_text: list[str] = []
            calls: list[FunctionCall] = []
            async for event in turn.model.stream(contents):
                match event:
                    case TextDelta(text=text):
                        step_text.append(text)
                        produced.append(text)
                        yield text
                    case FunctionCall():
                        calls.append(event)

            if not calls:
                break

            if tool_rounds >= self.settings.max_tool_steps:
                logger.warning(
                    "Tool step limit (%d) reached; dropping calls %s",
                    self.settings.max_tool_steps,
                    [c.name for c in calls],
                )
                produced.append(TOOL_LIMIT_REPLY)
                yield TOOL_LIMIT_REPLY
                break
            tool_rounds += 1

            logger.info("Tool round %d: %s", tool_rounds, [c.name for c in calls])
            contents.append(model_turn("".join(step_text), calls))
            results = []
            for call in calls:
                result = await turn.executor.execute(call.name, call.args)
                results.append((call.name, result))
            contents.append(function_responses(results))

        if not produced:
            logger.warning("Empty response from model")
            yield EMPTY_REPLY
            return

        reply = "".join(produced)
        if not validate_response(reply):
            logger.warning("Assistant reply may be off-topic: %r", reply[:200])
        logger.info("Enhanced AI response streamed: %d chars, %d tool rounds", len(reply), tool_rounds)

    async def complete_turn(self, turn: AcceptedTurn) -> str:
        """Drain :meth:`stream_turn` and return the whole reply."""
        return "".join([chunk async for chunk in self.stream_turn(turn)])
