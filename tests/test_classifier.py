import pytest

from doctranslator.core import database as db
from doctranslator.exceptions import ClassificationConfigError
from doctranslator.rules.classifier import Classifier
from doctranslator.rules.models import MatchType, RuleAction, TranslationRule
from doctranslator.rules.store import LearningStore, RuleStore


@pytest.fixture
def rule_store():
    return RuleStore()


@pytest.fixture
def classifier(rule_store):
    return Classifier(rule_store, LearningStore(), min_length=2, max_length=500)


@pytest.mark.parametrize("tenant", ["acme", "global", "another-tenant"])
def test_api_key_is_never_translated(classifier, tenant):
    assert classifier.should_translate("api_key", "abc123", tenant) is False


def test_price_range_is_not_translated(classifier):
    assert classifier.should_translate("description", "¥15,000-30,000", "acme") is False


@pytest.mark.parametrize("key,value", [
    ("updated_at", "Yesterday afternoon"),
    ("hotel_id", "Grand Hotel"),
    ("website", "https://example.com/kyoto"),
    ("contact", "info@example.com"),
    ("color", "#ff8800"),
    ("opening", "9:00 am"),
    ("season", "March - May"),
    ("_internal", "Some text"),
])
def test_global_defaults_exclude_technical_fields(classifier, key, value):
    assert classifier.should_translate(key, value, "acme") is False


def test_plain_text_is_translated(classifier):
    assert classifier.should_translate("title", "Welcome to Kyoto", "acme") is True


@pytest.mark.parametrize("value", [42, 3.5, True, None, "", "   ", "a", "x" * 501])
def test_values_outside_bounds_are_not_translated(classifier, value):
    assert classifier.should_translate("title", value, "acme") is False


def test_tenant_translate_rule_shadows_global_exclude(classifier, rule_store):
    rule_store.add_rule("acme", {"match_type": "key_exact", "pattern": "slug", "action": "translate"})
    assert classifier.should_translate("slug", "Kyoto temple guide", "acme") is True
    assert classifier.should_translate("slug", "Kyoto temple guide", "other") is False


def test_content_type_rules_need_the_content_type_enabled(classifier, rule_store):
    assert classifier.should_translate("label", "summer-sale", "shop") is True
    rule_store.set_content_types("shop", ["cms"])
    assert classifier.should_translate("label", "summer-sale", "shop") is False


def test_preserve_formatting_comes_from_first_matching_rule(classifier, rule_store):
    rule_store.add_rule("acme", {
        "match_type": "key_pattern",
        "pattern": "^message_",
        "action": "translate",
        "preserve_formatting": True,
    })
    assert classifier.should_preserve_formatting("message_welcome", "Hello {{name}}", "acme") is True
    assert classifier.should_preserve_formatting("title", "Hello {{name}}", "acme") is False


def test_learned_patterns_match_lowercased_key(classifier):
    context = classifier.context("acme", learned_patterns={"ref"})
    result = classifier.classify("Ref", "Some reference text", context)
    assert result.translate is False
    assert result.reason == "learned"


def test_add_rule_rejects_invalid_pattern(rule_store):
    with pytest.raises(ClassificationConfigError) as exc_info:
        rule_store.add_rule("acme", {"match_type": "key_pattern", "pattern": "(", "id": "broken"})
    assert exc_info.value.rule_id == "broken"


def test_stored_invalid_rule_is_skipped_with_diagnostic(classifier, rule_store):
    db.save_rule_set("acme", "1.0.0", [
        {"id": "broken", "match_type": "value_pattern", "pattern": "("},
        {"id": "no-tagline", "match_type": "key_exact", "pattern": "tagline"},
    ], [])

    loaded = rule_store.load("acme")
    assert [r.id for r in loaded.rule_set.rules] == ["no-tagline"]
    assert loaded.diagnostics[0]["rule_id"] == "broken"
    assert classifier.should_translate("tagline", "Best views in town", "acme") is False
    assert classifier.should_translate("title", "Best views in town", "acme") is True


def test_saving_an_existing_rule_set_bumps_patch_version(rule_store):
    first = rule_store.add_rule("acme", {"match_type": "key_exact", "pattern": "sku"})
    assert first.version == "1.0.0"
    second = rule_store.add_rule("acme", {"match_type": "key_exact", "pattern": "barcode"})
    assert second.version == "1.0.1"
    assert len(rule_store.load("acme").rule_set.rules) == 2


def test_rule_round_trips_through_dict():
    rule = TranslationRule(MatchType.CONTENT_TYPE, r"^[A-Z0-9]{4,}$", RuleAction.EXCLUDE,
                           content_type="ecommerce", target="value")
    restored = TranslationRule.from_dict(rule.to_dict())
    assert restored.matches("code", "AB12CD")
    assert not restored.matches("code", "hello")
