"""
Approval Propagator

A review decision is keyed by the content hash of
(original, translated, source language, target language). Every document
that carries the same pair receives the decision, without being reviewed
itself. Documents are matched by content only: an identical pair in an
unrelated context is stamped too.

Documents are stamped one after the other with no lock. Concurrent reviews
of the same content hash race and the last write wins.
"""

import hashlib
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from doctranslator.core import database as db
from doctranslator.exceptions import NotFoundError, TranslationError
from doctranslator.logger import get_logger
from doctranslator.translation.utils import iter_string_fields

logger = get_logger(__name__)

APPROVAL_STATUSES = ("pending", "approved", "rejected")


def content_hash(original_text: str, translated_text: str, source_language: str, target_language: str) -> str:
    """
    Deterministic digest identifying one translation instance.

    Examples:
        >>> len(content_hash('Hello', 'Hola', 'en', 'es'))
        64
    """
    payload = f"{original_text}|{translated_text}|{source_language}|{target_language}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def index_entries(document_id: str, source: Any, translated: Any, source_language: str,
                  target_language: str) -> List[Tuple[str, str, str, str]]:
    """Content index rows for every translated string whose source has a string at the same path."""
    source_fields = dict(iter_string_fields(source))
    entries = []
    for path, value in iter_string_fields(translated):
        original = source_fields.get(path)
        if original is None:
            continue
        entries.append((
            content_hash(original, value, source_language, target_language),
            document_id,
            target_language,
            path,
        ))
    return entries


def index_translation(document_id: str, source: Any, translated: Any, source_language: str,
                      target_language: str) -> int:
    """
    Replace the content index of one document language.

    Returns:
        Number of indexed fields
    """
    entries = index_entries(document_id, source, translated, source_language, target_language)
    db.clear_content_index(document_id, target_language)
    db.index_content(entries)
    logger.debug(f"Indexed {len(entries)} fields of {document_id} ({target_language})")
    return len(entries)


class ApprovalPropagator:
    """Records review decisions and propagates them by content hash."""

    def _validate_status(self, status: str):
        if status not in APPROVAL_STATUSES:
            raise TranslationError(
                f"Invalid approval status: {status}",
                code="invalid_status",
                details={"status": status, "allowed": list(APPROVAL_STATUSES)},
            )

    def record_approval(self, original_text: str, translated_text: str, source_language: str,
                        target_language: str, field_path: str, document_id: str,
                        status: str = "approved", reviewer: Optional[str] = None) -> Dict[str, Any]:
        """
        Record a review decision and stamp it on every document with the same content.

        Args:
            original_text: Source text of the field
            translated_text: Reviewed translation
            source_language: Source language code
            target_language: Target language code
            field_path: Path of the field in the reviewed document
            document_id: Reviewed document
            status: pending, approved or rejected
            reviewer: Who made the decision

        Returns:
            Dict with content_hash, status, affected_documents and failures

        Raises:
            TranslationError: If status is not a known approval status.
        """
        self._validate_status(status)
        digest = content_hash(original_text, translated_text, source_language, target_language)
        reviewed_at = datetime.now().isoformat()

        record = db.get_field_approval(digest) or {
            "content_hash": digest,
            "original_text": original_text,
            "translated_text": translated_text,
            "source_language": source_language,
            "target_language": target_language,
            "field_path": field_path,
            "document_refs": [],
        }
        record["status"] = status
        record["reviewed_by"] = reviewer
        record["reviewed_at"] = reviewed_at

        # document_id -> field paths to stamp
        targets: Dict[str, List[str]] = {document_id: [field_path]}
        for ref in db.find_content_refs(digest):
            if ref["target_language"] != target_language:
                continue
            paths = targets.setdefault(ref["document_id"], [])
            if ref["field_path"] not in paths:
                paths.append(ref["field_path"])

        refs = list(record.get("document_refs") or [])
        for ref_id in list(targets):
            if ref_id not in refs:
                refs.append(ref_id)
        for ref_id in refs:
            targets.setdefault(ref_id, [record.get("field_path") or field_path])
        record["document_refs"] = refs
        db.save_field_approval(record)

        decision = {"status": status, "reviewed_at": reviewed_at, "reviewed_by": reviewer, "content_hash": digest}
        affected = []
        failures = []
        for ref_id in refs:
            try:
                self._stamp_document(ref_id, target_language, targets[ref_id], decision)
                affected.append(ref_id)
            except Exception as e:
                logger.error(f"Failed to propagate approval {digest[:12]} to {ref_id}: {e}")
                failures.append({"document_id": ref_id, "error": str(e)})

        logger.info(
            f"Recorded {status} for {field_path} ({source_language}->{target_language}), "
            f"propagated to {len(affected)} document(s)"
        )
        return {
            "content_hash": digest,
            "status": status,
            "affected_documents": affected,
            "failures": failures,
        }

    def _stamp_document(self, document_id: str, target_language: str, field_paths: List[str],
                        decision: Dict[str, Any]):
        document = db.get_document(document_id)
        if not document:
            raise NotFoundError(f"Document {document_id} not found", details={"document_id": document_id})
        approval_status = document["field_approval_status"]
        language_status = approval_status.setdefault(target_language, {})
        for path in field_paths:
            language_status[path] = dict(decision)
        db.update_document_approval_status(document_id, approval_status)

    def bulk_record(self, approvals: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Record several approvals in order.

        A failing item is reported in its result and does not stop the rest.

        Returns:
            Dict with processed, successful and per-item results
        """
        results = []
        for item in approvals:
            try:
                result = self.record_approval(
                    item["original_text"],
                    item["translated_text"],
                    item["source_language"],
                    item["target_language"],
                    item["field_path"],
                    item["document_id"],
                    status=item.get("status", "approved"),
                    reviewer=item.get("reviewer"),
                )
                results.append({"success": True, **result})
            except KeyError as e:
                results.append({"success": False, "error": f"Missing field: {e.args[0]}"})
            except Exception as e:
                logger.error(f"Bulk approval item failed: {e}")
                results.append({"success": False, "error": str(e)})

        return {
            "processed": len(results),
            "successful": sum(1 for r in results if r["success"]),
            "results": results,
        }

    def get_field_approvals(self, document_id: str, language: str) -> Dict[str, Any]:
        """Per-field approval map of one document language."""
        document = db.get_document(document_id)
        if not document:
            raise NotFoundError(f"Document {document_id} not found", details={"document_id": document_id})
        return document["field_approval_status"].get(language, {})

    def get_approval_statistics(self) -> Dict[str, int]:
        counts = db.count_field_approvals_by_status()
        stats = {status: counts.get(status, 0) for status in APPROVAL_STATUSES}
        stats["total"] = sum(counts.values())
        return stats
