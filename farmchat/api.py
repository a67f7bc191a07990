"""farmchat/api.py

FastAPI HTTP interface for the smart chat gateway.

Endpoints:
  GET  /health                        — liveness probe
  POST /api/ai/smart-chat-enhanced    — one chat turn; streamed text, or a JSON
                                        rejection for off-topic input
"""

from __future__ import annotations

# Standard Library
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

# Third-Party Libraries
import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from pydantic import ValidationError

from farmchat.chat import AcceptedTurn, Rejection, SmartChatService
from farmchat.config import ChatSettings
from farmchat.errors import InvalidInputError, ServiceUnavailableError
from farmchat.llm import ModelFactory
from farmchat.messages import ChatRequest
from farmchat.urls import resolve_base_url

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logger = logging.getLogger("farmchat.api")

GENERIC_FAILURE = "AI service temporarily unavailable. Please try again."


async def _prepend(first: str | None, rest: AsyncIterator[str]) -> AsyncGenerator[str, None]:
    """Re-attach the already-awaited first chunk to the remaining stream."""
    if first is not None:
        yield first
    try:
        async for chunk in rest:
            yield chunk
    except Exception as exc:
        # Headers are already sent; the best we can do is log and abort.
        logger.error("Stream aborted mid-turn: %s", exc, exc_info=True)
        raise


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    settings: ChatSettings | None = None,
    model_factory: ModelFactory | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the FastAPI app with its dependencies injected.

    Args:
        settings: Gateway settings; loaded from the environment when omitted.
        model_factory: Model builder; Gemini when omitted.
        http_client: Client for collaborator APIs. When omitted one is created
            with the configured timeout and closed on shutdown.

    Returns:
        The configured application.
    """
    settings = settings or ChatSettings()
    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=settings.tool_timeout_seconds)
    service = SmartChatService(settings, client, model_factory)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "farmchat starting: model=%s base_url=%s env=%s",
            settings.gemini_model,
            settings.app_base_url,
            settings.app_env,
        )
        try:
            yield
        finally:
            if owns_client:
                await client.aclose()

    app = FastAPI(
        title="farmchat",
        version="0.1.0",
        description=(
            "Farming marketplace assistant. Streams Gemini replies and lets the "
            "model call the marketplace's product, seller, seasonal, wishlist, "
            "order and payment tools."
        ),
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.chat_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["meta"])
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok", "server": "farmchat"}

    @app.post("/api/ai/smart-chat-enhanced", tags=["chat"])
    async def smart_chat_enhanced(request: Request) -> Response:
        """Run one chat turn.

        Returns:
            503 text when the model credential is missing, 400 text when no
            usable message was sent, 200 JSON ``{role, content}`` for an
            off-topic rejection, otherwise a 200 ``text/plain`` stream of the
            assistant reply. Unexpected failures return 500 JSON
            ``{error, details}``.
        """
        try:
            service.ensure_configured()
        except ServiceUnavailableError as exc:
            return PlainTextResponse(str(exc), status_code=exc.status_code)

        try:
            payload: Any = await request.json()
            body = ChatRequest.model_validate(payload if isinstance(payload, dict) else {})
            base_url = resolve_base_url(request.headers, settings)
            plan = service.prepare_turn(body, base_url)

            match plan:
                case Rejection(content=content):
                    logger.info("Non-farming topic detected, returning rejection")
                    return JSONResponse({"role": "assistant", "content": content})
                case AcceptedTurn():
                    stream = service.stream_turn(plan)
                    # Pull the first chunk here so a failing model call still
                    # becomes a 500 rather than a truncated 200.
                    first = await anext(stream, None)
                    return StreamingResponse(
                        _prepend(first, stream),
                        media_type="text/plain; charset=utf-8",
                        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
                    )
        except InvalidInputError as exc:
            logger.warning("Rejected request: %s", exc)
            return PlainTextResponse(str(exc), status_code=exc.status_code)
        except ValidationError as exc:
            logger.warning("Malformed chat request: %s", exc)
            return PlainTextResponse("No valid messages provided", status_code=400)
        except Exception as exc:
            logger.error("Enhanced Smart AI Chat error: %s", exc, exc_info=True)
            return JSONResponse(
                {"error": GENERIC_FAILURE, "details": str(exc)}, status_code=500
            )

    return app


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_api() -> None:
    """Start the FastAPI server via uvicorn."""
    settings = ChatSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting farmchat API on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_api()
