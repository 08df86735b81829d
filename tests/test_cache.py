import sqlite3

import pytest

from doctranslator.core import database as db
from doctranslator.exceptions import CacheError
from doctranslator.translation.cache import CachedTranslator, TranslationCache
from doctranslator.translation.numerals import NumeralConverter
from doctranslator.translation.placeholder_safe import PlaceholderSafeTranslator

from tests.conftest import FakeAdapter


@pytest.mark.asyncio
async def test_second_call_is_served_from_cache(adapter):
    translator = CachedTranslator(PlaceholderSafeTranslator(adapter))

    first = await translator.translate("Welcome to Kyoto", "es")
    second = await translator.translate("Welcome to Kyoto", "es")

    assert first == ("[es] Welcome to Kyoto", False)
    assert second == ("[es] Welcome to Kyoto", True)
    assert len(adapter.calls) == 1


@pytest.mark.asyncio
async def test_cache_is_keyed_by_language(adapter):
    translator = CachedTranslator(PlaceholderSafeTranslator(adapter))
    await translator.translate("Welcome", "es")
    await translator.translate("Welcome", "fr")
    assert len(adapter.calls) == 2
    assert TranslationCache().count() == 2
    assert TranslationCache().count("fr") == 1


@pytest.mark.asyncio
async def test_skip_cache_calls_provider_again(adapter):
    translator = CachedTranslator(PlaceholderSafeTranslator(adapter))
    await translator.translate("Welcome", "es")
    result = await translator.translate("Welcome", "es", skip_cache=True)
    assert result == ("[es] Welcome", False)
    assert len(adapter.calls) == 2


@pytest.mark.asyncio
async def test_cache_stores_provider_output_and_numerals_apply_on_read():
    adapter = FakeAdapter(responses={"Room 12": "कमरा 12"})
    translator = CachedTranslator(PlaceholderSafeTranslator(adapter), numerals=NumeralConverter())

    fresh = await translator.translate("Room 12", "hi")
    cached = await translator.translate("Room 12", "hi")

    assert fresh == ("कमरा १२", False)
    assert cached == ("कमरा १२", True)
    assert db.get_cached_translation("Room 12", "hi") == "कमरा 12"


@pytest.mark.asyncio
async def test_unavailable_store_raises_cache_error(adapter, monkeypatch):
    def broken(*args):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(db, "get_cached_translation", broken)
    translator = CachedTranslator(PlaceholderSafeTranslator(adapter))

    with pytest.raises(CacheError) as exc_info:
        await translator.translate("Welcome", "es")
    assert exc_info.value.code == "cache_unavailable"
    assert adapter.calls == []


def test_duplicate_rows_are_tolerated():
    db.add_cached_translation("Hello", "es", "Hola")
    db.add_cached_translation("Hello", "es", "Hola")
    assert db.get_cached_translation("Hello", "es") == "Hola"
    assert db.count_cached_translations("es") == 2
