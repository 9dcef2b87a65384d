import json

import httpx
import pytest

from chat_core.domain.exceptions import ApiError, InvalidFormatError, NetworkError, RateLimitError
from chat_core.domain.models import Message
from chat_core.providers.completion_client import CompletionClient


class SettingsStub:
    base_url = "https://openrouter.ai/api/v1/chat/completions"
    api_key = "sk-test"
    model_name = "deepseek/deepseek-r1:free"
    http_timeout = 1.0


class Resp:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise json.JSONDecodeError("Expecting value", self.text, 0)
        return self._data


def make_client_cls(resp=None, exc=None, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["client_kwargs"] = kw

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, content=None, headers=None, **_):
            if captured is not None:
                captured["url"] = url
                captured["headers"] = headers
                captured["payload"] = json.loads(content)
                captured["calls"] = captured.get("calls", 0) + 1
            if exc is not None:
                raise exc
            return resp

    return Client


def ok_body(content="ok"):
    return {
        "id": "gen-1",
        "model": "deepseek/deepseek-r1:free",
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


@pytest.mark.asyncio
async def test_complete_returns_first_choice_verbatim(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(data=ok_body("  **Hi** there!\n"))))
    client = CompletionClient(SettingsStub())
    reply = await client.complete([Message.user("Hello")])
    assert reply == "  **Hi** there!\n"


@pytest.mark.asyncio
async def test_request_payload_and_headers(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(data=ok_body()), captured=captured))
    history = [
        Message.assistant("Hello! How can I assist you today?"),
        Message.user("hi"),
        Message.assistant("hey"),
        Message.user("how are you?"),
    ]
    await CompletionClient(SettingsStub()).complete(history)

    assert captured["calls"] == 1
    assert captured["url"] == SettingsStub.base_url
    assert captured["headers"]["Authorization"] == "Bearer sk-test"
    assert captured["headers"]["Content-Type"] == "application/json"
    assert captured["client_kwargs"]["timeout"] == 1.0
    payload = captured["payload"]
    assert payload["model"] == "deepseek/deepseek-r1:free"
    assert payload["stream"] is False
    assert payload["temperature"] == 0.7
    assert payload["max_tokens"] == 1000
    assert payload["messages"] == [
        {"role": "assistant", "content": "Hello! How can I assist you today?"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hey"},
        {"role": "user", "content": "how are you?"},
    ]


@pytest.mark.asyncio
async def test_loading_placeholder_is_not_serialized(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(data=ok_body()), captured=captured))
    await CompletionClient(SettingsStub()).complete([Message.user("hi"), Message.placeholder()])
    assert captured["payload"]["messages"] == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_settings_are_read_per_request(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(data=ok_body()), captured=captured))
    cfg = SettingsStub()
    client = CompletionClient(cfg)
    cfg.model_name = "other/model"
    cfg.api_key = "sk-new"
    await client.complete([Message.user("hi")])
    assert captured["payload"]["model"] == "other/model"
    assert captured["headers"]["Authorization"] == "Bearer sk-new"


@pytest.mark.asyncio
async def test_connect_error_is_network_error(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(exc=httpx.ConnectError("connection refused")))
    with pytest.raises(NetworkError):
        await CompletionClient(SettingsStub()).complete([Message.user("hi")])


@pytest.mark.asyncio
async def test_timeout_is_network_error(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(exc=httpx.ReadTimeout("timed out")))
    with pytest.raises(NetworkError) as ei:
        await CompletionClient(SettingsStub()).complete([Message.user("hi")])
    assert ei.value.code == "NETWORK_ERROR"


@pytest.mark.asyncio
async def test_malformed_body_is_invalid_format(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(text="<html>oops</html>")))
    with pytest.raises(InvalidFormatError):
        await CompletionClient(SettingsStub()).complete([Message.user("hi")])


@pytest.mark.asyncio
async def test_wrong_shape_is_invalid_format(monkeypatch):
    body = {"choices": [{"message": {"role": "assistant"}}]}
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(data=body)))
    with pytest.raises(InvalidFormatError):
        await CompletionClient(SettingsStub()).complete([Message.user("hi")])


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"id": "x", "choices": []}, {"id": "x"}])
async def test_missing_choices_is_empty_response(monkeypatch, body):
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(data=body)))
    with pytest.raises(ApiError) as ei:
        await CompletionClient(SettingsStub()).complete([Message.user("hi")])
    assert ei.value.message == "empty response"


@pytest.mark.asyncio
async def test_http_error_status(monkeypatch):
    resp = Resp(status_code=401, text='{"error": "bad key"}')
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(resp))
    with pytest.raises(ApiError) as ei:
        await CompletionClient(SettingsStub()).complete([Message.user("hi")])
    assert ei.value.http_status == 401
    assert not isinstance(ei.value, RateLimitError)


@pytest.mark.asyncio
async def test_rate_limit_is_not_retried(monkeypatch):
    captured = {}
    monkeypatch.setattr("httpx.AsyncClient", make_client_cls(Resp(status_code=429, text="slow down"), captured=captured))
    with pytest.raises(RateLimitError):
        await CompletionClient(SettingsStub()).complete([Message.user("hi")])
    assert captured["calls"] == 1
