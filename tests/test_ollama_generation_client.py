"""
Tests for the Ollama generation client, against a mocked transport.
"""

import json

import httpx
import pytest

from concept_cache.entities import ModelTier
from concept_cache.exceptions import GenerationError, GenerationTimeoutError, MalformedOutputError
from concept_cache.repositories import OllamaGenerationClient

MODELS = {ModelTier.LOW_COST: "small-model", ModelTier.HIGH_COST: "large-model"}


def make_client(handler) -> OllamaGenerationClient:
    return OllamaGenerationClient(
        models=MODELS,
        base_url="http://ollama.test/",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


async def test_generate_posts_json_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": '{"explanation": "x"}', "done": True})

    client = make_client(handler)
    text = await client.generate("prompt text", ModelTier.HIGH_COST, timeout=5)
    await client.close()

    assert text == '{"explanation": "x"}'
    assert seen["url"] == "http://ollama.test/api/generate"
    assert seen["body"]["model"] == "large-model"
    assert seen["body"]["prompt"] == "prompt text"
    assert seen["body"]["stream"] is False
    assert seen["body"]["format"] == "json"


def test_model_name():
    client = make_client(lambda request: httpx.Response(200))
    assert client.model_name(ModelTier.LOW_COST) == "small-model"


async def test_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(GenerationTimeoutError):
        await make_client(handler).generate("p", ModelTier.LOW_COST, timeout=1)


async def test_http_error():
    with pytest.raises(GenerationError) as exc_info:
        await make_client(lambda request: httpx.Response(500)).generate(
            "p", ModelTier.LOW_COST, timeout=1
        )
    assert not isinstance(exc_info.value, GenerationTimeoutError)


async def test_connection_refused_hint():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(GenerationError, match="ollama serve"):
        await make_client(handler).generate("p", ModelTier.LOW_COST, timeout=1)


@pytest.mark.parametrize("body", [{"response": ""}, {"done": True}, {"response": "   "}])
async def test_empty_generation(body):
    with pytest.raises(MalformedOutputError):
        await make_client(lambda request: httpx.Response(200, json=body)).generate(
            "p", ModelTier.LOW_COST, timeout=1
        )


async def test_non_json_body():
    with pytest.raises(GenerationError):
        await make_client(lambda request: httpx.Response(200, text="<html>")).generate(
            "p", ModelTier.LOW_COST, timeout=1
        )


async def test_is_available():
    assert await make_client(lambda request: httpx.Response(200, json={"models": []})).is_available()

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    assert not await make_client(handler).is_available()
