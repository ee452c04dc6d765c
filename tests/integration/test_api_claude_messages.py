import pytest

from victry.errors import LLMRateLimitError, LLMUnavailableError, LLMUpstreamError
from victry.types import ModelResponse

REPLY = ModelResponse(
    content="Response from Claude",
    id="msg_123",
    model="claude-3-7-sonnet-20250219",
    stop_reason="end_turn",
    input_tokens=10,
    output_tokens=5,
)


def test_single_prompt_is_sent_as_one_user_message(client, alice_headers, fake_provider) -> None:
    fake_provider.queue(REPLY)

    response = client.post(
        "/api/ai/claude",
        json={"prompt": "Hello Claude", "maxTokens": 1000, "temperature": 0.5},
        headers=alice_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json() == {
        "id": "msg_123",
        "type": "completion",
        "role": "assistant",
        "content": "Response from Claude",
        "model": "claude-3-7-sonnet-20250219",
        "stopReason": "end_turn",
        "stopSequence": None,
        "usage": {"inputTokens": 10, "outputTokens": 5},
        "toolCalls": {},
    }
    request = fake_provider.requests[0]
    assert [(message.role, message.content) for message in request.messages] == [("user", "Hello Claude")]
    assert request.max_tokens == 1000
    assert request.temperature == 0.5
    assert request.tools == []


def test_message_history_is_forwarded_in_order(client, alice_headers, fake_provider) -> None:
    fake_provider.queue(REPLY)
    history = [
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "Hi there"},
        {"role": "user", "content": "How are you?"},
    ]

    response = client.post("/api/ai/claude", json={"messages": history}, headers=alice_headers)

    assert response.status_code == 200, response.text
    request = fake_provider.requests[0]
    assert [message.model_dump() for message in request.messages] == history
    assert request.max_tokens == 1024
    assert request.temperature == 0.7


def test_optional_sampling_parameters_are_forwarded(client, alice_headers, fake_provider) -> None:
    fake_provider.queue(ModelResponse(content="ok"))

    response = client.post(
        "/api/ai/claude",
        json={
            "prompt": "Hello",
            "system": "You are a helpful assistant",
            "stopSequences": ["END"],
            "topK": 10,
            "topP": 0.9,
            "model": "claude-custom-model",
        },
        headers=alice_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json()["model"] == "claude-custom-model"
    request = fake_provider.requests[0]
    assert request.system == "You are a helpful assistant"
    assert request.stop_sequences == ["END"]
    assert request.top_k == 10
    assert request.top_p == 0.9
    assert request.model == "claude-custom-model"


def test_tool_calls_are_returned_to_the_caller(client, alice_headers, fake_provider) -> None:
    fake_provider.queue(ModelResponse(content="", tool_calls={"test_tool": {"value": "test"}}))

    response = client.post(
        "/api/ai/claude",
        json={
            "prompt": "Use the tool",
            "tools": [{"name": "test_tool", "description": "A test tool", "input_schema": {"type": "object"}}],
        },
        headers=alice_headers,
    )

    assert response.status_code == 200, response.text
    assert response.json()["toolCalls"] == {"test_tool": {"value": "test"}}
    assert fake_provider.requests[0].tools[0].name == "test_tool"


@pytest.mark.parametrize("body", [{}, {"messages": []}, {"prompt": ""}, {"system": "Only a system prompt"}])
def test_prompt_or_messages_is_required(client, alice_headers, fake_provider, body) -> None:
    response = client.post("/api/ai/claude", json=body, headers=alice_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert "Either prompt or messages is required" in response.json()["error"]
    assert fake_provider.requests == []


@pytest.mark.parametrize(
    ("error", "status", "code"),
    [
        (LLMRateLimitError("anthropic rate limit exceeded"), 429, "llm_rate_limited"),
        (LLMUnavailableError("Anthropic API key is not configured"), 503, "llm_unavailable"),
        (LLMUpstreamError("anthropic API error (500)", upstream_status=500), 502, "llm_upstream_error"),
    ],
)
def test_provider_failures_use_the_error_envelope(client, alice_headers, fake_provider, error, status, code) -> None:
    fake_provider.queue(error)

    response = client.post("/api/ai/claude", json={"prompt": "Hello"}, headers=alice_headers)

    assert response.status_code == status
    assert response.json() == {"error": error.message, "code": code}


def test_messages_endpoint_requires_a_session(client, fake_provider) -> None:
    assert client.post("/api/ai/claude", json={"prompt": "Hello"}).status_code == 401
    assert fake_provider.requests == []
