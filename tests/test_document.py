import copy
import sqlite3

import httpx
import pytest

from doctranslator.config import DEFAULT_CONFIG
from doctranslator.core import database as db
from doctranslator.exceptions import CacheError, ProviderError
from doctranslator.translation.document import DocumentTranslator

from tests.conftest import FakeAdapter, build_document_translator, identity


@pytest.mark.asyncio
async def test_leaf_entity_gets_url():
    translator = build_document_translator(FakeAdapter(responses=identity))
    document = {"name": "Fushimi Inari Shrine", "type": "Religious Site", "description": "Famous shrine"}

    result = await translator.translate_document(document, "es", "acme")

    assert result.output["url"] == "fushimi-inari-shrine"
    assert result.output["old_urls"] == []
    assert result.stats.translated == 3
    assert "url" not in document


@pytest.mark.asyncio
async def test_root_gets_translation_meta(document_translator):
    result = await document_translator.translate_document({"title": "Kyoto guide"}, "fr", "acme")

    meta = result.output["_translation_meta"]
    assert meta["target_language"] == "fr"
    assert meta["tenant_id"] == "acme"
    assert meta["verified"] is False
    assert meta["auto_generated"] is True
    assert meta["stats"] == {"translated": 1, "cached": 0, "skipped": 0, "errors": 0}
    assert meta["translated_at"]


@pytest.mark.asyncio
async def test_non_translatable_value_is_skipped(document_translator):
    document = {"title": "Kyoto tour", "price": "¥15,000-30,000"}
    result = await document_translator.translate_document(document, "es", "acme")

    assert result.output["price"] == "¥15,000-30,000"
    assert result.output["title"] == "[es] Kyoto tour"
    assert result.stats.skipped == 1
    assert result.stats.translated == 1


@pytest.mark.asyncio
async def test_nested_objects_and_lists():
    adapter = FakeAdapter()
    translator = build_document_translator(adapter)
    document = {
        "id": "guide-1",
        "title": "Kyoto guide",
        "tags": ["temple", "garden"],
        "attractions": [{"name": "Kinkaku-ji Temple", "description": "Golden pavilion"}],
    }

    result = await translator.translate_document(document, "es", "acme")
    output = result.output

    assert output["id"] == "guide-1"
    assert output["title"] == "[es] Kyoto guide"
    assert output["tags"] == ["[es] temple", "[es] garden"]
    attraction = output["attractions"][0]
    assert attraction["name"] == "[es] Kinkaku-ji Temple"
    assert attraction["url"] == "es-kinkaku-ji-temple"
    assert "url" not in output
    assert result.stats.translated == 5
    assert result.stats.skipped == 1
    assert list(output)[:4] == ["id", "title", "tags", "attractions"]


@pytest.mark.asyncio
async def test_field_failure_keeps_original_value():
    translator = build_document_translator(FakeAdapter(fail_on={"Broken text"}))
    document = {"title": "Kyoto guide", "subtitle": "Broken text"}

    result = await translator.translate_document(document, "es", "acme")

    assert result.output["subtitle"] == "Broken text"
    assert result.output["title"] == "[es] Kyoto guide"
    assert result.stats.errors == 1
    assert result.stats.translated == 1


@pytest.mark.asyncio
async def test_second_session_is_served_from_cache():
    adapter = FakeAdapter()
    translator = build_document_translator(adapter)
    document = {"title": "Kyoto guide", "summary": "Temples and gardens"}

    await translator.translate_document(document, "es", "acme")
    second = await translator.translate_document(document, "es", "acme")

    assert second.stats.cached == 2
    assert second.stats.translated == 0
    assert len(adapter.calls) == 2


@pytest.mark.asyncio
async def test_skip_cache_retranslates():
    adapter = FakeAdapter()
    translator = build_document_translator(adapter)
    document = {"title": "Kyoto guide"}

    await translator.translate_document(document, "es", "acme")
    second = await translator.translate_document(document, "es", "acme", skip_cache=True)

    assert second.stats.translated == 1
    assert len(adapter.calls) == 2


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    adapter = FakeAdapter(delay=0.01)
    translator = build_document_translator(adapter, max_concurrency=2)
    document = {f"field_{i}": f"Sentence number {i}" for i in range(6)}

    result = await translator.translate_document(document, "es", "acme")

    assert result.stats.translated == 6
    assert adapter.max_in_flight <= 2


@pytest.mark.asyncio
async def test_cache_failure_aborts_session(adapter, monkeypatch):
    def broken(*args):
        raise sqlite3.OperationalError("unable to open database file")

    monkeypatch.setattr(db, "get_cached_translation", broken)
    translator = build_document_translator(adapter)

    with pytest.raises(CacheError):
        await translator.translate_document({"title": "Kyoto guide"}, "es", "acme")


@pytest.mark.asyncio
async def test_learned_key_is_skipped():
    settings = {"min_frequency": 1, "confidence_threshold": 0.8, "max_patterns": 1000}
    translator = build_document_translator(FakeAdapter(), detection_settings=settings)
    document = {"promoid": "Spring festival", "title": "Hello world"}

    result = await translator.translate_document(document, "es", "acme")

    assert result.output["promoid"] == "Spring festival"
    assert result.stats.skipped == 1
    assert result.stats.translated == 1


@pytest.mark.asyncio
async def test_list_document(document_translator):
    result = await document_translator.translate_document(["Hello there", "Good night"], "de", "acme")
    assert result.output == ["[de] Hello there", "[de] Good night"]


@pytest.mark.asyncio
async def test_numerals_are_converted_for_target_script():
    translator = build_document_translator(FakeAdapter(responses=identity))
    result = await translator.translate_document({"title": "Room 123"}, "hi", "acme")
    assert result.output["title"] == "Room १२३"


@pytest.mark.asyncio
async def test_translate_document_languages(document_translator):
    results = await document_translator.translate_document_languages({"title": "Kyoto guide"}, ["es", "fr"], "acme")
    assert results["es"].output["title"] == "[es] Kyoto guide"
    assert results["fr"].output["title"] == "[fr] Kyoto guide"


def test_from_config_rejects_missing_credential(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ProviderError) as exc_info:
        DocumentTranslator.from_config(copy.deepcopy(DEFAULT_CONFIG))
    assert exc_info.value.kind == "invalid_credential"


@pytest.mark.asyncio
async def test_from_config_builds_provider_stack():
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["openai"]["api_key"] = "sk-test"

    def handler(request):
        return httpx.Response(200, json={
            "choices": [{"message": {"role": "assistant", "content": "Hola mundo"}}],
            "usage": {"prompt_tokens": 8, "completion_tokens": 2},
        })

    translator = DocumentTranslator.from_config(config, transport=httpx.MockTransport(handler))
    result = await translator.translate_document({"title": "Hello world"}, "es", "acme")

    assert result.output["title"] == "Hola mundo"
    assert result.stats.translated == 1
