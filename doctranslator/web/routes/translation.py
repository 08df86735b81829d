"""Translation API routes."""

from __future__ import annotations

import asyncio
from typing import Any, Dict

from flask import Blueprint, jsonify, request

from doctranslator import language_codes as lc
from doctranslator.logger import get_logger

from ..services import get_services

translation_bp = Blueprint("translation", __name__)
logger = get_logger(__name__)


def _bad_request(message: str, code: str = "invalid_request"):
    return jsonify({"error": message, "code": code}), 400


@translation_bp.post("/translate")
def translate_page():
    """Translate a document (inline data or source_url) into one or more languages."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    content_id = data.get("content_id")
    languages = data.get("languages")

    if not isinstance(content_id, str) or not content_id.strip():
        return _bad_request("content_id is required")
    if not isinstance(languages, list) or not languages or not all(
        isinstance(code, str) and code.strip() for code in languages
    ):
        return _bad_request("languages must be a non-empty list of language codes")
    invalid = [code for code in languages if not lc.is_valid_language_code(code.strip())]
    if invalid:
        return _bad_request(f"Unsupported language code(s): {', '.join(invalid)}", code="invalid_language")
    if data.get("data") is None and not data.get("source_url"):
        return _bad_request("Either data or source_url is required", code="missing_source")

    logger.info(f"Translation requested for {content_id}: {languages}")
    result = asyncio.run(get_services().pages.translate_page(
        content_id.strip(),
        data.get("model_name") or "document",
        [code.strip() for code in languages],
        tenant_id=data.get("tenant_id") or "default",
        source_url=data.get("source_url"),
        data=data.get("data"),
        skip_cache=bool(data.get("skip_cache", False)),
        force=bool(data.get("force", False)),
    ))
    return jsonify(result)


@translation_bp.post("/translate/string")
def translate_string():
    """Translate a single string through the cache."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    text = data.get("text")
    language = data.get("language")
    if not isinstance(text, str) or not text.strip():
        return _bad_request("text is required")
    if not isinstance(language, str) or not language.strip():
        return _bad_request("language is required")

    translator = get_services().pages.translator.translator
    translated, from_cache = asyncio.run(translator.translate(
        text,
        language.strip(),
        preserve_formatting=bool(data.get("preserve_formatting", False)),
        skip_cache=bool(data.get("skip_cache", False)),
    ))
    return jsonify({"text": text, "language": language.strip(), "translation": translated, "from_cache": from_cache})


@translation_bp.get("/translations/<content_id>")
def get_translations(content_id: str):
    """Return every translation of a document, or one with ?language=."""
    language = request.args.get("language")
    return jsonify(get_services().pages.get_translations(content_id, language))


@translation_bp.put("/translations/<content_id>/url")
def update_translation_url(content_id: str):
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    language = data.get("language")
    url = data.get("url")
    if not isinstance(language, str) or not language:
        return _bad_request("language is required")
    if not isinstance(url, str) or not url.strip():
        return _bad_request("url is required")

    translation = get_services().pages.update_translation_url(content_id, language, url.strip())
    return jsonify({"content_id": content_id, "language": language, "translation": translation})


@translation_bp.patch("/translations/<content_id>/fields")
def update_translation_fields(content_id: str):
    """Merge reviewer edits into one language's translation."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    language = data.get("language")
    updates = data.get("updates")
    if not isinstance(language, str) or not language:
        return _bad_request("language is required")
    if not isinstance(updates, dict):
        return _bad_request("updates must be an object")

    translation = get_services().pages.update_translation_fields(content_id, language, updates)
    return jsonify({"content_id": content_id, "language": language, "translation": translation})


@translation_bp.post("/translations/<content_id>/refresh")
def refresh_source(content_id: str):
    """Re-fetch the source document and flag changes."""
    return jsonify(asyncio.run(get_services().pages.refresh_source(content_id)))


@translation_bp.get("/translations")
def list_translations():
    """List stored documents, optionally filtered with ?model_name=."""
    documents = get_services().pages.list_documents(request.args.get("model_name"))
    return jsonify({"documents": documents, "total": len(documents)})


@translation_bp.delete("/translations/<content_id>")
def delete_translations(content_id: str):
    get_services().pages.delete_page(content_id)
    return jsonify({"content_id": content_id, "deleted": True})
