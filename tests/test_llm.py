import io
import json
import logging

import pytest
import requests

from assistant import llm
from assistant.config import GatewayConfig
from assistant.llm import BedrockGateway, OpenAICompatibleGateway, create_gateway
from assistant.models import AIRequest, AIUnavailableError, GatewayError

_real_log_usage = llm._log_usage


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK", body=None):
        self.status_code = status_code
        self.reason = reason
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self._body = body

    def json(self):
        if self._body is not None:
            return json.loads(self._body)
        return self._payload


@pytest.fixture(autouse=True)
def no_usage_log(monkeypatch):
    monkeypatch.setattr(llm, "_log_usage", lambda *args: None)


@pytest.fixture
def captured(monkeypatch):
    calls = []
    result = {"response": FakeResponse(payload={
        "choices": [{"message": {"role": "assistant", "content": "hello"}}],
        "usage": {"total_tokens": 17},
    })}

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        response = result["response"]
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(requests, "post", fake_post)
    return calls, result


def _gateway(key="sk-test"):
    return OpenAICompatibleGateway(
        GatewayConfig(credential=key, base_url="https://llm.example/v1", model="gpt-test")
    )


def test_availability_follows_credential():
    assert _gateway().is_available()
    assert not _gateway("").is_available()
    assert not _gateway("  \t").is_available()


def test_complete_builds_chat_request(captured):
    calls, _ = captured
    response = _gateway().complete(AIRequest(prompt="hi", context="be nice", max_tokens=50))

    assert response.content == "hello"
    assert response.model == "gpt-test"
    assert response.tokens_used == 17

    [(url, kwargs)] = calls
    assert url == "https://llm.example/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert kwargs["timeout"] == (30, 60)
    assert kwargs["json"] == {
        "model": "gpt-test",
        "messages": [
            {"role": "system", "content": "be nice"},
            {"role": "user", "content": "hi"},
        ],
        "max_tokens": 50,
        "temperature": 0.7,
    }


def test_complete_without_context_sends_only_user_message(captured):
    calls, _ = captured
    _gateway().complete(AIRequest(prompt="hi"))

    body = calls[0][1]["json"]
    assert body["messages"] == [{"role": "user", "content": "hi"}]
    assert body["max_tokens"] == 2000


def test_missing_usage_means_zero_tokens(captured):
    _, result = captured
    result["response"] = FakeResponse(payload={"choices": [{"message": {"content": "x"}}]})

    assert _gateway().complete(AIRequest(prompt="hi")).tokens_used == 0


def test_unavailable_gateway_does_not_send(captured):
    calls, _ = captured

    with pytest.raises(AIUnavailableError):
        _gateway("").complete(AIRequest(prompt="hi"))
    assert calls == []


def test_non_success_status(captured):
    _, result = captured
    result["response"] = FakeResponse(status_code=429, reason="Too Many Requests")

    with pytest.raises(GatewayError) as exc_info:
        _gateway().complete(AIRequest(prompt="hi"))
    assert exc_info.value.status == 429
    assert "429 - Too Many Requests" in str(exc_info.value)


def test_transport_error(captured):
    calls, result = captured
    result["response"] = requests.exceptions.ConnectTimeout("timed out")

    with pytest.raises(GatewayError, match="timed out"):
        _gateway().complete(AIRequest(prompt="hi"))
    assert len(calls) == 1


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(body="<html>not json</html>"),
        FakeResponse(payload={"choices": []}),
        FakeResponse(payload={"error": "nope"}),
        FakeResponse(payload=["not", "an", "object"]),
    ],
)
def test_malformed_body(captured, response):
    _, result = captured
    result["response"] = response

    with pytest.raises(GatewayError, match="Malformed"):
        _gateway().complete(AIRequest(prompt="hi"))


class FakeBedrockClient:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def invoke_model(self, **kwargs):
        self.calls.append(kwargs)
        return {"body": io.BytesIO(json.dumps(self.payload).encode())}


def test_bedrock_complete():
    gateway = BedrockGateway(GatewayConfig(provider="bedrock", credential="bedrock", model="m-1"))
    client = FakeBedrockClient(
        {
            "content": [{"type": "text", "text": "TITLE: "}, {"type": "text", "text": "x"}],
            "stop_reason": "end_turn",
            "usage": {"input_tokens": 10, "output_tokens": 5},
        }
    )
    gateway._client = client

    response = gateway.complete(AIRequest(prompt="p", context="ctx", max_tokens=99))

    assert response.content == "TITLE: x"
    assert response.tokens_used == 15
    [call] = client.calls
    assert call["modelId"] == "m-1"
    body = json.loads(call["body"])
    assert body["system"] == "ctx"
    assert body["max_tokens"] == 99
    assert body["temperature"] == 0.7
    assert body["messages"] == [{"role": "user", "content": "p"}]


def test_bedrock_failure_is_gateway_error():
    class Broken:
        def invoke_model(self, **kwargs):
            raise ConnectionError("no route")

    gateway = BedrockGateway(GatewayConfig(provider="bedrock", credential="bedrock"))
    gateway._client = Broken()

    with pytest.raises(GatewayError, match="no route"):
        gateway.complete(AIRequest(prompt="p"))


def test_create_gateway():
    assert isinstance(create_gateway(GatewayConfig(provider="openai")), OpenAICompatibleGateway)
    assert isinstance(create_gateway(GatewayConfig(provider="bedrock")), BedrockGateway)
    with pytest.raises(ValueError):
        create_gateway(GatewayConfig(provider="carrier-pigeon"))


def test_usage_log_failure_keeps_response(monkeypatch, tmp_path, captured):
    monkeypatch.setattr(llm, "_log_usage", _real_log_usage)
    monkeypatch.setattr(llm, "_usage_logger", None)
    monkeypatch.setattr(logging.getLogger("assistant.usage"), "handlers", [])
    # A directory cannot be opened as the usage file
    monkeypatch.setattr(llm, "USAGE_LOG_PATH", str(tmp_path))

    response = _gateway().complete(AIRequest(prompt="hi"))

    assert response.content == "hello"
    assert llm._usage_logger is None


def test_unexpected_send_error_becomes_gateway_error(monkeypatch):
    gateway = _gateway()

    def broken_send(request):
        raise AttributeError("'list' object has no attribute 'get'")

    monkeypatch.setattr(gateway, "_send", broken_send)

    with pytest.raises(GatewayError, match="no attribute"):
        gateway.complete(AIRequest(prompt="hi"))


@pytest.mark.parametrize(
    "usage",
    ["lots", {"total_tokens": "many"}, {"total_tokens": None}, {"total_tokens": True}],
)
def test_malformed_usage_counts_as_zero(captured, usage):
    _, result = captured
    result["response"] = FakeResponse(
        payload={"choices": [{"message": {"content": "x"}}], "usage": usage}
    )

    response = _gateway().complete(AIRequest(prompt="hi"))

    assert response.content == "x"
    assert response.tokens_used == 0


def _bedrock(payload):
    gateway = BedrockGateway(GatewayConfig(provider="bedrock", credential="bedrock"))
    gateway._client = FakeBedrockClient(payload)
    return gateway


@pytest.mark.parametrize(
    "payload",
    [
        ["not an object"],
        {"content": "plain text"},
        {"content": ["TITLE: A"]},
        {"content": [{"type": "text", "text": 42}]},
    ],
)
def test_bedrock_malformed_body(payload):
    with pytest.raises(GatewayError, match="Malformed Bedrock response body"):
        _bedrock(payload).complete(AIRequest(prompt="p"))


def test_bedrock_null_usage_counts_as_zero():
    payload = {
        "content": [{"type": "text", "text": "ok"}, {"type": "tool_use", "id": "t1"}],
        "usage": {"input_tokens": None, "output_tokens": 7},
    }

    response = _bedrock(payload).complete(AIRequest(prompt="p"))

    assert response.content == "ok"
    assert response.tokens_used == 7
    assert _bedrock({"content": [], "usage": None}).complete(AIRequest(prompt="p")).tokens_used == 0
