"""Approval API routes."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, jsonify, request

from doctranslator.logger import get_logger

from ..services import get_services

approvals_bp = Blueprint("approvals", __name__)
logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "original_text",
    "translated_text",
    "source_language",
    "target_language",
    "field_path",
    "document_id",
)


@approvals_bp.post("")
def record_approval():
    """Record a review decision and propagate it to matching documents."""
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    missing = [name for name in REQUIRED_FIELDS if not isinstance(data.get(name), str)]
    if missing:
        return jsonify({"error": "Missing required fields", "code": "invalid_request",
                        "details": {"missing": missing}}), 400

    result = get_services().approvals.record_approval(
        *(data[name] for name in REQUIRED_FIELDS),
        status=data.get("status", "approved"),
        reviewer=data.get("reviewer"),
    )
    return jsonify(result)


@approvals_bp.post("/bulk")
def bulk_record_approvals():
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    approvals = data.get("approvals")
    if not isinstance(approvals, list):
        return jsonify({"error": "approvals must be a list", "code": "invalid_request"}), 400
    return jsonify(get_services().approvals.bulk_record(approvals))


@approvals_bp.get("/statistics")
def approval_statistics():
    return jsonify(get_services().approvals.get_approval_statistics())


@approvals_bp.get("/<content_id>/<language>")
def field_approvals(content_id: str, language: str):
    approvals = get_services().approvals.get_field_approvals(content_id, language)
    return jsonify({"content_id": content_id, "language": language, "fields": approvals})
