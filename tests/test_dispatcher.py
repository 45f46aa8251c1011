"""
Tests for the dispatcher against a stubbed provider.
Run with: pytest tests/test_dispatcher.py
"""

import httpx
import pytest

from chatrelay.adapters.custom import CustomAdapter
from chatrelay.adapters.registry import ProviderRegistry
from chatrelay.dispatcher import dispatch, error_detail
from chatrelay.errors import ProviderHttpError, ProviderNetworkError
from chatrelay.models import ApiMessage, CustomApiConfig

HISTORY = [ApiMessage(role="user", content="hi")]


@pytest.fixture
def registry():
    return ProviderRegistry()


@pytest.mark.asyncio
async def test_dispatch_returns_raw_json(provider_stub, registry):
    body = {"choices": [{"message": {"content": "hello"}}]}
    provider_stub.reply(200, body)

    data = await dispatch(registry.get("openai"), HISTORY, "sk-1")

    assert data == body
    req = provider_stub.requests[0]
    assert req.method == "POST"
    assert str(req.url) == "https://api.openai.com/v1/chat/completions"
    assert req.headers["authorization"] == "Bearer sk-1"
    assert provider_stub.last_body["messages"] == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_gemini_key_goes_in_query(provider_stub, registry):
    provider_stub.reply(200, {"candidates": []})
    await dispatch(registry.get("gemini"), HISTORY, "gk")
    req = provider_stub.requests[0]
    assert req.url.params["key"] == "gk"
    assert req.url.path.endswith("/gemini-1.5-flash-latest:generateContent")
    assert "authorization" not in req.headers


@pytest.mark.asyncio
async def test_identical_inputs_give_identical_requests(provider_stub, registry):
    provider_stub.reply(200, {"content": [{"text": "x"}]})
    adapter = registry.get("anthropic")
    await dispatch(adapter, HISTORY, "k", "m")
    await dispatch(adapter, HISTORY, "k", "m")
    first, second = provider_stub.requests
    assert first.url == second.url
    assert first.content == second.content
    assert dict(first.headers) == dict(second.headers)


@pytest.mark.asyncio
async def test_http_error_uses_error_message(provider_stub, registry):
    provider_stub.reply(401, {"error": {"message": "Incorrect API key", "type": "auth"}})
    with pytest.raises(ProviderHttpError) as exc:
        await dispatch(registry.get("openai"), HISTORY, "bad")
    err = exc.value
    assert err.status == 401
    assert err.message == "Incorrect API key"
    assert str(err) == "OpenAI API request failed with status 401: Incorrect API key"


@pytest.mark.asyncio
async def test_http_error_falls_back_to_type(provider_stub, registry):
    provider_stub.reply(529, {"type": "error", "error": {"type": "overloaded_error"}})
    with pytest.raises(ProviderHttpError) as exc:
        await dispatch(registry.get("anthropic"), HISTORY, "k")
    assert exc.value.message == "overloaded_error"


@pytest.mark.asyncio
async def test_http_error_string_error(provider_stub, registry):
    provider_stub.reply(400, {"error": "model not found"})
    with pytest.raises(ProviderHttpError) as exc:
        await dispatch(registry.get("deepseek"), HISTORY, "k")
    assert exc.value.message == "model not found"


@pytest.mark.asyncio
async def test_http_error_reason_phrase_when_unparseable(provider_stub, registry):
    provider_stub.reply(503, text="<html>down</html>")
    with pytest.raises(ProviderHttpError) as exc:
        await dispatch(registry.get("gemini"), HISTORY, "k")
    assert exc.value.message == "Service Unavailable"


@pytest.mark.asyncio
async def test_custom_error_uses_raw_text(provider_stub):
    provider_stub.reply(502, text="upstream exploded")
    adapter = CustomAdapter(CustomApiConfig(id="c1", name="Mine", endpoint="http://llm.local/chat", api_key="k"))
    with pytest.raises(ProviderHttpError) as exc:
        await dispatch(adapter, HISTORY, None)
    assert exc.value.message == "upstream exploded"
    assert str(exc.value).startswith("Custom API request to Mine failed with status 502")


@pytest.mark.asyncio
async def test_non_json_success_is_an_error(provider_stub, registry):
    provider_stub.reply(200, text="not json")
    with pytest.raises(ProviderHttpError) as exc:
        await dispatch(registry.get("openai"), HISTORY, "k")
    assert exc.value.status == 200
    assert "Invalid JSON" in exc.value.message


@pytest.mark.asyncio
async def test_network_error(provider_stub, registry):
    provider_stub.fail(httpx.ConnectError, "connection refused")
    with pytest.raises(ProviderNetworkError) as exc:
        await dispatch(registry.get("openai"), HISTORY, "k")
    assert isinstance(exc.value.cause, httpx.ConnectError)
    assert "connection refused" in str(exc.value)


@pytest.mark.asyncio
async def test_timeout_is_a_network_error(provider_stub, registry):
    provider_stub.fail(httpx.ReadTimeout, "timed out")
    with pytest.raises(ProviderNetworkError):
        await dispatch(registry.get("anthropic"), HISTORY, "k", timeout=0.5)
    assert len(provider_stub.requests) == 1  # no retry


def test_error_detail_empty_error_object():
    resp = httpx.Response(418, json={"error": {}})
    assert error_detail(resp) == "I'm a teapot"


def test_error_detail_json_list_body():
    resp = httpx.Response(500, json=["nope"])
    assert error_detail(resp, raw_text_errors=True) == "Internal Server Error"


@pytest.mark.asyncio
async def test_custom_dispatch_needs_no_credential(provider_stub):
    provider_stub.reply(200, {"data": [{"text": "ok"}]})
    adapter = CustomAdapter(CustomApiConfig(id="c1", endpoint="http://llm.local/chat", api_key="ck"))
    assert await dispatch(adapter, HISTORY) == {"data": [{"text": "ok"}]}
    assert provider_stub.requests[0].headers["authorization"] == "Bearer ck"
