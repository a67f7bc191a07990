"""tests/test_api.py

HTTP-level tests for the chat endpoint (farmchat/api.py) using FastAPI's
``TestClient``. The model is scripted and the collaborator APIs are stubbed.
"""

from __future__ import annotations

# Standard Library
from collections.abc import AsyncIterator, Sequence
from typing import Any

# Third-Party Libraries
import httpx
import pytest
from fastapi.testclient import TestClient

# Local Modules
from farmchat.api import GENERIC_FAILURE, create_app
from farmchat.config import ChatSettings
from farmchat.llm import Content, ModelEvent
from tests.helpers import CollaboratorStub, ModelRecorder, ScriptedModel, call_step, text_step

CHAT = "/api/ai/smart-chat-enhanced"


class ExplodingModel:
    """ChatModel whose first step fails before producing anything."""

    async def stream(self, contents: Sequence[Content]) -> AsyncIterator[ModelEvent]:
        raise RuntimeError("quota exceeded")
        yield  # pragma: no cover


def make_test_client(
    settings: ChatSettings,
    collaborators: CollaboratorStub,
    recorder: ModelRecorder,
) -> TestClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(collaborators))
    return TestClient(create_app(settings, model_factory=recorder, http_client=http_client))


@pytest.fixture
def recorder() -> ModelRecorder:
    return ModelRecorder()


@pytest.fixture
def client(
    settings: ChatSettings, collaborators: CollaboratorStub, recorder: ModelRecorder
) -> TestClient:
    with make_test_client(settings, collaborators, recorder) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "server": "farmchat"}


class TestSmartChatEnhanced:
    """End-to-end turns through the HTTP surface."""

    def test_buy_two_kg_tomatoes(
        self,
        client: TestClient,
        recorder: ModelRecorder,
        collaborators: CollaboratorStub,
        sample_user: dict[str, Any],
    ) -> None:
        collaborators.routes[("POST", "/api/ai/instant-order")] = httpx.Response(
            200, json={"success": True, "orderId": "ord-9", "trackingUrl": "/track/ord-9"}
        )
        recorder.model.steps = [
            call_step("instant_order", itemName="tomatoes", quantity=2),
            text_step("✅ Ordered 2kg tomatoes. ", "Order ID: ord-9"),
        ]

        response = client.post(
            CHAT,
            json={"messages": [{"role": "user", "content": "buy 2kg tomatoes"}], "user": sample_user},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/plain; charset=utf-8"
        assert response.text == "✅ Ordered 2kg tomatoes. Order ID: ord-9"

        assert len(collaborators.requests) == 1
        request = collaborators.requests[0]
        assert str(request.url) == "http://marketplace.test/api/ai/instant-order"
        body = collaborators.json_body()
        assert body["itemName"] == "tomatoes"
        assert body["quantity"] == 2
        assert body["userId"] == "user-42"

    def test_off_topic_rejection(
        self, client: TestClient, recorder: ModelRecorder, collaborators: CollaboratorStub
    ) -> None:
        response = client.post(
            CHAT, json={"messages": [{"role": "user", "content": "What's the weather today?"}]}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        payload = response.json()
        assert payload["role"] == "assistant"
        assert "weather today" in payload["content"]
        assert collaborators.requests == []
        assert recorder.prompts == []

    @pytest.mark.parametrize(
        "body",
        [
            {"messages": [{"role": "user", "content": ""}]},
            {"messages": [{"role": "user", "content": "   "}, {"role": "assistant"}]},
            {"messages": []},
            {},
            ["not", "an", "object"],
        ],
    )
    def test_no_valid_messages(
        self, client: TestClient, recorder: ModelRecorder, body: Any
    ) -> None:
        response = client.post(CHAT, json=body)

        assert response.status_code == 400
        assert response.text == "No valid messages provided"
        assert recorder.prompts == []

    def test_malformed_message_list(self, client: TestClient) -> None:
        response = client.post(CHAT, json={"messages": "buy tomatoes"})

        assert response.status_code == 400
        assert response.text == "No valid messages provided"

    def test_not_configured(
        self,
        unconfigured_settings: ChatSettings,
        collaborators: CollaboratorStub,
        recorder: ModelRecorder,
    ) -> None:
        with make_test_client(unconfigured_settings, collaborators, recorder) as test_client:
            response = test_client.post(
                CHAT, json={"messages": [{"role": "user", "content": "buy 2kg tomatoes"}]}
            )

        assert response.status_code == 503
        assert response.text == "AI service not configured"
        assert recorder.prompts == []
        assert collaborators.requests == []

    def test_model_failure_is_500(
        self, settings: ChatSettings, collaborators: CollaboratorStub
    ) -> None:
        recorder = ModelRecorder()
        recorder.model = ExplodingModel()  # type: ignore[assignment]

        with make_test_client(settings, collaborators, recorder) as test_client:
            response = test_client.post(
                CHAT, json={"messages": [{"role": "user", "content": "buy 2kg tomatoes"}]}
            )

        assert response.status_code == 500
        assert response.json() == {"error": GENERIC_FAILURE, "details": "quota exceeded"}

    def test_invalid_json_is_500(self, client: TestClient) -> None:
        response = client.post(
            CHAT, content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == GENERIC_FAILURE

    def test_history_reaches_model(self, client: TestClient, recorder: ModelRecorder) -> None:
        response = client.post(
            CHAT,
            json={
                "messages": [
                    {"role": "user", "content": "Which vegetables are in season?"},
                    {"role": "assistant", "content": "Okra and gourds."},
                    {"role": "user", "content": "How do I grow okra?"},
                ]
            },
        )

        assert response.status_code == 200
        assert response.text == "Happy farming!"
        assert [c["role"] for c in recorder.model.seen[0]] == ["user", "model", "user"]
        assert "- User: Guest (guest)" in recorder.prompts[0]

    def test_unknown_roles_are_skipped(
        self, client: TestClient, recorder: ModelRecorder
    ) -> None:
        response = client.post(
            CHAT,
            json={
                "messages": [
                    {"role": "system", "content": "hi"},
                    {"role": "user", "content": "buy 2kg tomatoes"},
                ]
            },
        )

        assert response.status_code == 200
        assert response.text == "Happy farming!"
        assert recorder.model.seen[0] == [{"role": "user", "parts": [{"text": "buy 2kg tomatoes"}]}]

    def test_unreachable_collaborator_origin_is_not_500(
        self, settings: ChatSettings, collaborators: CollaboratorStub
    ) -> None:
        bad_origin = settings.model_copy(update={"app_base_url": "http://bad host:xx"})
        recorder = ModelRecorder(
            ScriptedModel(
                [call_step("search_products", query="okra"), text_step("No okra listings right now.")]
            )
        )

        with make_test_client(bad_origin, collaborators, recorder) as test_client:
            response = test_client.post(
                CHAT, json={"messages": [{"role": "user", "content": "find okra price"}]}
            )

        assert response.status_code == 200
        assert response.text == "No okra listings right now."
        tool_result = recorder.model.seen[1][-1]["parts"][0]["function_response"]["response"]
        assert tool_result["success"] is False
        assert tool_result["products"] == []
        assert collaborators.requests == []
