import pytest

from doctranslator.translation.slugs import apply_url, assign_url, make_slug, needs_url, slug_source


@pytest.mark.parametrize("text,expected", [
    ("Fushimi Inari Shrine", "fushimi-inari-shrine"),
    ("  Café & Crème!  ", "cafe-creme"),
    ("Kinkaku-ji (Golden Pavilion)", "kinkaku-ji-golden-pavilion"),
    ("--Already--hyphenated--", "already-hyphenated"),
])
def test_make_slug(text, expected):
    assert make_slug(text) == expected


def test_non_latin_text_gets_content_fallback():
    assert make_slug("寺") == f"content-{ord('寺')}"
    assert make_slug("伏見稲荷").startswith("content-")


def test_needs_url():
    assert needs_url({"name": "Fushimi Inari Shrine"})
    assert not needs_url({"name": "Shop"})
    assert not needs_url({"name": "Fushimi Inari Shrine", "tags": ["shrine"]})
    assert needs_url({"name": "Fushimi Inari Shrine", "url": "x", "old_urls": ["y"]})
    assert not needs_url({})


def test_slug_source_prefers_name_fields():
    assert slug_source({"summary": "A long summary text", "title": "Golden Pavilion"}) == "Golden Pavilion"
    assert slug_source({"summary": "A long summary text", "url": "ignored-url"}) == "A long summary text"


def test_rerunning_with_changed_name_records_old_url_once():
    entity = {"name": "Fushimi Inari Shrine", "description": "Famous shrine"}
    assert apply_url(entity)
    assert entity["url"] == "fushimi-inari-shrine"
    assert entity["old_urls"] == []

    entity["name"] = "Fushimi Inari Taisha"
    apply_url(entity)
    apply_url(entity)

    assert entity["url"] == "fushimi-inari-taisha"
    assert entity["old_urls"] == ["fushimi-inari-shrine"]


def test_assign_same_url_keeps_history_unchanged():
    entity = {"url": "kyoto", "old_urls": ["old-kyoto"]}
    assign_url(entity, "kyoto")
    assert entity["old_urls"] == ["old-kyoto"]
