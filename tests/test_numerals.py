import pytest

from doctranslator.core import database as db
from doctranslator.translation.numerals import (
    NumeralConverter,
    convert_digits,
    has_numerals_to_convert,
    script_for,
)


@pytest.mark.asyncio
async def test_hindi_conversion_keeps_layout():
    text = "Room 123, Floor 5"
    converted = await NumeralConverter().convert(text, "hi")

    assert converted == "Room १२३, Floor ५"
    assert len(converted) == len(text)
    assert not any("0" <= ch <= "9" for ch in converted)
    for original, new in zip(text, converted):
        if not original.isdigit():
            assert original == new


@pytest.mark.asyncio
async def test_latin_digit_languages_are_unchanged():
    assert await NumeralConverter().convert("Room 123", "es") == "Room 123"


@pytest.mark.asyncio
async def test_regional_code_uses_base_language():
    assert await NumeralConverter().convert("12", "ar-EG") == "١٢"


@pytest.mark.asyncio
async def test_conversions_are_cached():
    converter = NumeralConverter()
    await converter.convert("Call 555", "th")
    await converter.convert("Call 555", "th")

    stats = converter.cache_stats()
    assert stats["misses"] == 1
    assert stats["hits"] == 1
    assert stats["stored"] == 1
    assert db.get_numeral_conversion("Call 555", "th") == "Call ๕๕๕"


@pytest.mark.asyncio
async def test_stored_conversion_is_reused_by_a_new_converter():
    await NumeralConverter().convert("Gate 7", "bn")
    fresh = NumeralConverter()
    assert await fresh.convert("Gate 7", "bn") == "Gate ৭"
    assert fresh.cache_stats()["hits"] == 1


@pytest.mark.asyncio
async def test_failure_returns_original_text(monkeypatch):
    def broken(*args):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(db, "get_numeral_conversion", broken)
    assert await NumeralConverter().convert("Room 42", "hi") == "Room 42"


@pytest.mark.asyncio
async def test_disabled_converter_is_a_no_op():
    assert await NumeralConverter(enabled=False).convert("Room 42", "hi") == "Room 42"


def test_clear_cache():
    converter = NumeralConverter(persistent=False)
    converter._cache[("1", "hi")] = "१"
    converter.clear_cache()
    assert converter.cache_stats() == {"size": 0, "hits": 0, "misses": 0}


def test_helpers():
    assert script_for("hi") == "Devanagari"
    assert script_for("en") is None
    assert has_numerals_to_convert("Price: ¥15,000", "hi")
    assert not has_numerals_to_convert("Price: $25.99", "es")
    assert convert_digits("2024", "fa") == "۲۰۲۴"
