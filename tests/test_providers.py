import asyncio
import copy
import json

import httpx
import pytest

from doctranslator.ai.credentials import ConfigCredentialProvider
from doctranslator.ai.providers import error_kind_for_status
from doctranslator.ai.service import TranslationService, clean_response_text, validate_ai_config
from doctranslator.config import DEFAULT_CONFIG
from doctranslator.exceptions import ProviderError, TranslationError


def make_config(provider="openai", **overrides):
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["ai_provider"] = provider
    config[provider]["api_key"] = "sk-test"
    config[provider].update(overrides)
    return config


def chat_response(content):
    return httpx.Response(200, json={
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3},
    })


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


@pytest.mark.asyncio
async def test_openai_translation():
    requests = []

    def handler(request):
        requests.append(request)
        return chat_response("Hola mundo")

    service = TranslationService(config=make_config(), transport=httpx.MockTransport(handler))
    assert await service.translate("Hello world", "es") == "Hola mundo"

    body = json.loads(requests[0].content)
    assert requests[0].headers["Authorization"] == "Bearer sk-test"
    assert body["model"] == "gpt-4o-mini"
    assert "Hello world" in body["messages"][1]["content"]
    assert "TOKEN_" not in body["messages"][0]["content"]
    assert service.get_total_token_usage() == {"prompt_tokens": 12, "completion_tokens": 3}


@pytest.mark.asyncio
async def test_token_instruction_is_added_to_system_message():
    requests = []

    def handler(request):
        requests.append(json.loads(request.content))
        return chat_response("Hola TOKEN_0")

    service = TranslationService(config=make_config(), transport=httpx.MockTransport(handler))
    await service.translate("Hello TOKEN_0", "es", preserve_tokens=True)
    assert "TOKEN_0" in requests[0]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_invalid_credential_is_not_retried(sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"error": {"message": "bad key"}})

    service = TranslationService(config=make_config(), transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderError) as exc_info:
        await service.translate("Hello", "es")

    assert exc_info.value.kind == "invalid_credential"
    assert exc_info.value.status_code == 401
    assert len(calls) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_rate_limit_backs_off_then_succeeds(sleeps):
    responses = [httpx.Response(429, json={"error": "slow down"}), chat_response("Hola")]

    def handler(request):
        return responses.pop(0)

    service = TranslationService(config=make_config(max_retries=3), transport=httpx.MockTransport(handler))
    assert await service.translate("Hello", "es") == "Hola"
    assert sleeps == [30]
    assert service.calls == 2


@pytest.mark.asyncio
async def test_unavailable_exhausts_retries(sleeps):
    service = TranslationService(
        config=make_config(max_retries=3),
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
    )
    with pytest.raises(ProviderError) as exc_info:
        await service.translate("Hello", "es")

    assert exc_info.value.kind == "unavailable"
    assert sleeps == [1, 2]
    assert service.calls == 3


@pytest.mark.asyncio
async def test_timeout_is_a_provider_error(sleeps):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    service = TranslationService(config=make_config(max_retries=2), transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderError) as exc_info:
        await service.translate("Hello", "es")
    assert exc_info.value.kind == "timeout"
    assert sleeps == [5]


@pytest.mark.asyncio
async def test_huggingface_endpoint():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"translated_text": "Bonjour"})

    config = make_config("huggingface", api_url="http://mt.local:8000/")
    service = TranslationService(config=config, transport=httpx.MockTransport(handler))

    assert await service.translate("Hello", "fr") == "Bonjour"
    assert str(requests[0].url) == "http://mt.local:8000/api/v1/translate"
    assert json.loads(requests[0].content) == {"text": "Hello", "lang": "fr"}


@pytest.mark.asyncio
async def test_gemini_endpoint():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": "Hallo"}]}}],
            "usageMetadata": {"promptTokenCount": 10, "totalTokenCount": 12},
        })

    service = TranslationService(config=make_config("gemini"), transport=httpx.MockTransport(handler))

    assert await service.translate("Hello", "de") == "Hallo"
    assert requests[0].url.params["key"] == "sk-test"
    assert "gemini-2.5-flash:generateContent" in str(requests[0].url)
    assert service.get_total_token_usage() == {"prompt_tokens": 10, "completion_tokens": 2}


def test_credentials_fall_back_to_environment(monkeypatch):
    config = copy.deepcopy(DEFAULT_CONFIG)
    monkeypatch.setenv("DEEPSEEK_API_KEY", "env-secret")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    credentials = ConfigCredentialProvider(config)

    assert credentials.get_credential("deepseek") == "env-secret"
    with pytest.raises(ProviderError) as exc_info:
        credentials.get_credential("openai")
    assert exc_info.value.kind == "invalid_credential"


def test_validate_ai_config(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    validate_ai_config(config=make_config())

    with pytest.raises(ProviderError):
        validate_ai_config(config=copy.deepcopy(DEFAULT_CONFIG))
    with pytest.raises(TranslationError) as exc_info:
        validate_ai_config("nonexistent", config=make_config())
    assert exc_info.value.code == "ai_config_missing"


@pytest.mark.parametrize("status,kind", [
    (429, "rate_limited"), (401, "invalid_credential"), (403, "invalid_credential"),
    (504, "timeout"), (500, "unavailable"),
])
def test_error_kind_for_status(status, kind):
    assert error_kind_for_status(status) == kind


@pytest.mark.parametrize("raw,expected", [
    ("```\nHola\n```", "Hola"),
    ('"Hola"', "Hola"),
    ("  Hola  ", "Hola"),
    ("", ""),
])
def test_clean_response_text(raw, expected):
    assert clean_response_text(raw) == expected
