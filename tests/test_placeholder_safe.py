import pytest

from doctranslator.translation.placeholder_safe import PlaceholderSafeTranslator

from tests.conftest import FakeAdapter


@pytest.mark.asyncio
async def test_tokenized_translation_is_restored():
    def respond(text, language):
        if text == "Hello TOKEN_0, you have TOKEN_1 messages.":
            return "Hola TOKEN_0, tienes TOKEN_1 mensajes."
        return "unexpected"

    adapter = FakeAdapter(responses=respond)
    translator = PlaceholderSafeTranslator(adapter)

    result = await translator.translate("Hello {{name}}, you have %d messages.", "es")

    assert result == "Hola {{name}}, tienes %d mensajes."
    assert adapter.calls == [("Hello TOKEN_0, you have TOKEN_1 messages.", "es", True)]
    assert translator.fallbacks == 0


@pytest.mark.asyncio
async def test_lost_token_falls_back_to_direct_translation():
    def respond(text, language):
        if "TOKEN_" in text:
            return "Hola TOKEN_0, tienes mensajes."
        return "Hola {{name}}, tienes %d mensajes."

    adapter = FakeAdapter(responses=respond)
    translator = PlaceholderSafeTranslator(adapter)

    result = await translator.translate("Hello {{name}}, you have %d messages.", "es")

    assert result == "Hola {{name}}, tienes %d mensajes."
    assert adapter.calls[-1] == ("Hello {{name}}, you have %d messages.", "es", False)
    assert translator.fallbacks == 1


@pytest.mark.asyncio
async def test_provider_error_on_tokenized_call_falls_back():
    adapter = FakeAdapter(fail_on={"Hi TOKEN_0"})
    translator = PlaceholderSafeTranslator(adapter)

    assert await translator.translate("Hi {name}", "fr") == "[fr] Hi {name}"
    assert translator.fallbacks == 1


@pytest.mark.asyncio
async def test_plain_text_is_sent_directly(adapter):
    translator = PlaceholderSafeTranslator(adapter)
    assert await translator.translate("Good morning", "de") == "[de] Good morning"
    assert adapter.calls == [("Good morning", "de", False)]
