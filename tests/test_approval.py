import pytest

from doctranslator.approval.propagator import ApprovalPropagator, content_hash
from doctranslator.core import database as db
from doctranslator.exceptions import NotFoundError, TranslationError
from doctranslator.pages.service import PageTranslationService

from tests.conftest import FakeAdapter, build_document_translator

RESPONSES = {"Hello": "Hola", "Kyoto temples": "Templos de Kioto", "Osaka castle": "Castillo de Osaka"}


@pytest.fixture
def pages():
    translator = build_document_translator(FakeAdapter(responses=RESPONSES))
    return PageTranslationService(translator=translator, source_language="en")


def test_content_hash_is_deterministic():
    assert content_hash("Hello", "Hola", "en", "es") == content_hash("Hello", "Hola", "en", "es")
    assert content_hash("Hello", "Hola", "en", "es") != content_hash("Hello", "Hola", "en", "pt")


@pytest.mark.asyncio
async def test_approval_propagates_to_identical_content(pages):
    await pages.translate_page("A", "page", ["es"], data={"title": "Hello", "body": "Kyoto temples"})
    await pages.translate_page("B", "page", ["es"], data={"title": "Hello", "body": "Osaka castle"})
    propagator = ApprovalPropagator()

    result = propagator.record_approval("Hello", "Hola", "en", "es", "title", "A", "approved", "maria")

    assert set(result["affected_documents"]) == {"A", "B"}
    assert result["failures"] == []
    assert propagator.get_field_approvals("B", "es")["title"]["status"] == "approved"
    assert propagator.get_field_approvals("B", "es")["title"]["reviewed_by"] == "maria"
    assert "body" not in propagator.get_field_approvals("B", "es")

    record = db.get_field_approval(result["content_hash"])
    assert record["document_refs"] == ["A", "B"]


@pytest.mark.asyncio
async def test_later_decision_overwrites_earlier(pages):
    await pages.translate_page("A", "page", ["es"], data={"title": "Hello"})
    propagator = ApprovalPropagator()
    propagator.record_approval("Hello", "Hola", "en", "es", "title", "A", "approved", "maria")
    propagator.record_approval("Hello", "Hola", "en", "es", "title", "A", "rejected", "li")

    field = propagator.get_field_approvals("A", "es")["title"]
    assert field["status"] == "rejected"
    assert field["reviewed_by"] == "li"
    assert propagator.get_approval_statistics() == {"pending": 0, "approved": 0, "rejected": 1, "total": 1}


def test_invalid_status_is_rejected():
    with pytest.raises(TranslationError) as exc_info:
        ApprovalPropagator().record_approval("Hello", "Hola", "en", "es", "title", "A", "maybe")
    assert exc_info.value.code == "invalid_status"


def test_missing_document_is_reported_as_failure():
    result = ApprovalPropagator().record_approval("Hello", "Hola", "en", "es", "title", "ghost")
    assert result["affected_documents"] == []
    assert result["failures"][0]["document_id"] == "ghost"


@pytest.mark.asyncio
async def test_bulk_continues_after_failures(pages):
    await pages.translate_page("A", "page", ["es"], data={"title": "Hello", "body": "Kyoto temples"})
    items = [
        {"original_text": "Hello", "translated_text": "Hola", "source_language": "en",
         "target_language": "es", "field_path": "title", "document_id": "A"},
        {"original_text": "Hello", "translated_text": "Hola", "source_language": "en",
         "target_language": "es", "field_path": "title", "document_id": "A", "status": "bogus"},
        {"original_text": "Kyoto temples"},
        {"original_text": "Kyoto temples", "translated_text": "Templos de Kioto", "source_language": "en",
         "target_language": "es", "field_path": "body", "document_id": "A", "status": "rejected"},
    ]

    result = ApprovalPropagator().bulk_record(items)

    assert result["processed"] == 4
    assert result["successful"] == 2
    assert [r["success"] for r in result["results"]] == [True, False, False, True]
    assert ApprovalPropagator().get_field_approvals("A", "es")["body"]["status"] == "rejected"


def test_field_approvals_for_unknown_document():
    with pytest.raises(NotFoundError):
        ApprovalPropagator().get_field_approvals("missing", "es")


@pytest.mark.asyncio
async def test_deleting_document_prunes_approval_refs(pages):
    await pages.translate_page("A", "page", ["es"], data={"title": "Hello"})
    await pages.translate_page("B", "page", ["es"], data={"title": "Hello"})
    propagator = ApprovalPropagator()
    first = propagator.record_approval("Hello", "Hola", "en", "es", "title", "A", "approved", "maria")
    assert set(first["affected_documents"]) == {"A", "B"}

    pages.delete_page("B")
    assert db.get_field_approval(first["content_hash"])["document_refs"] == ["A"]

    second = propagator.record_approval("Hello", "Hola", "en", "es", "title", "A", "rejected", "li")
    assert second["failures"] == []
    assert second["affected_documents"] == ["A"]
