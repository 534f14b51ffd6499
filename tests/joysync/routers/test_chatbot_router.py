"""Tests for the chatbot router."""

import pytest
from pydantic_ai.messages import ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from joysync.routers.chatbot_router import get_chatbot_runner
from joysync.workers.chatbot import ChatbotRunner


def _reply(messages, info: AgentInfo) -> ModelResponse:
    return ModelResponse(parts=[TextPart(content="Sure, here you go.")])


@pytest.fixture
def use_runner(app):
    def install(runner: ChatbotRunner) -> None:
        app.dependency_overrides[get_chatbot_runner] = lambda: runner

    return install


def test_generate_reply(client, use_runner):
    use_runner(ChatbotRunner("test-model", model=FunctionModel(_reply), min_request_interval_ms=0))
    r = client.post(
        "/chatbot/generate",
        json={
            "prompt": "And what about dinner?",
            "history": [
                {"role": "user", "content": "Plan my lunch please"},
                {"role": "assistant", "content": "Try a salad."},
            ],
        },
    )
    assert r.status_code == 200
    data = r.json()
    assert data["reply"] == "Sure, here you go."
    assert data["title"] == "Plan my lunch & more..."
    assert data["summary"] == "Discussing: Plan my lunch please, And what about dinner?..."


def test_generate_invalid_prompt(client, use_runner):
    use_runner(ChatbotRunner("test-model", model=FunctionModel(_reply), min_request_interval_ms=0))
    r = client.post("/chatbot/generate", json={"prompt": "   "})
    assert r.status_code == 400


def test_generate_not_configured(client, use_runner):
    use_runner(ChatbotRunner("test-model", api_key=None))
    r = client.post("/chatbot/generate", json={"prompt": "hello"})
    assert r.status_code == 503
    assert "not configured" in r.json()["detail"]
