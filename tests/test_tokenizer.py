import pytest

from doctranslator.exceptions import TokenizationMismatchError
from doctranslator.translation.tokenizer import detokenize, has_protected_constructs, tokenize
from doctranslator.translation.validator import ensure_tokens_preserved, validate_tokens_preserved


@pytest.mark.parametrize("text", [
    "Welcome to Kyoto",
    "Price: 100 yen",
    "50% off everything",
    "",
])
def test_plain_text_has_no_tokens(text):
    tokenized, token_map = tokenize(text)
    assert token_map == {}
    assert tokenized == text
    assert detokenize(tokenized, {}) == text


def test_mixed_placeholders_scenario():
    tokenized, token_map = tokenize("Hello {{name}}, you have %d messages.")
    assert tokenized == "Hello TOKEN_0, you have TOKEN_1 messages."
    assert token_map == {"TOKEN_0": "{{name}}", "TOKEN_1": "%d"}

    translated = "Hola TOKEN_0, tienes TOKEN_1 mensajes."
    assert detokenize(translated, token_map) == "Hola {{name}}, tienes %d mensajes."


def test_identical_placeholders_share_a_token():
    text = "{name} and {name} met {other}"
    tokenized, token_map = tokenize(text)
    assert tokenized == "TOKEN_0 and TOKEN_0 met TOKEN_1"
    assert detokenize(tokenized, token_map) == text


@pytest.mark.parametrize("text", [
    '<a href="{url}">Click</a> to continue',
    "<b>{{ user.name }}</b> wrote %location%",
    "Save {count, number} items <br/> now",
    "%s of %d done",
])
def test_round_trip(text):
    tokenized, token_map = tokenize(text)
    assert token_map
    assert detokenize(tokenized, token_map) == text


def test_nested_construct_is_fully_hidden():
    tokenized, token_map = tokenize('<a href="{url}">Click</a>')
    assert "{url}" not in tokenized
    assert "<a" not in tokenized
    assert "Click" in tokenized


def test_many_tokens_restore_in_descending_order():
    text = " ".join(f"{{v{i}}}" for i in range(13))
    tokenized, token_map = tokenize(text)
    assert "TOKEN_12" in token_map
    assert detokenize(tokenized, token_map) == text


def test_escaped_placeholder_is_left_alone():
    text = r"Use \{name} literally"
    assert not has_protected_constructs(text)
    assert tokenize(text) == (text, {})


def test_lost_token_is_detected():
    tokenized, token_map = tokenize("Hello {{name}}, you have %d messages.")
    is_valid, reason = validate_tokens_preserved(tokenized, "Hola TOKEN_0, tienes mensajes.", token_map)
    assert not is_valid
    assert "TOKEN_1" in reason

    with pytest.raises(TokenizationMismatchError) as exc_info:
        ensure_tokens_preserved(tokenized, "Hola TOKEN_0, tienes mensajes.", token_map)
    assert exc_info.value.missing_tokens == ["TOKEN_1"]


def test_mangled_token_is_detected():
    tokenized, token_map = tokenize("Hi {name}")
    is_valid, reason = validate_tokens_preserved(tokenized, "Hola TOKEN_0 TOKEN_7", token_map)
    assert not is_valid
    assert reason.startswith("tokens_mangled")
