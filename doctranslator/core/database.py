"""
Database CRUD Operations Module

This module handles all database CRUD operations for:
- Translation cache
- Numeral conversion cache
- Tenant rule sets and auto-detection state
- Translated documents and the content index
- Field approvals
- App Config

For schema management and migrations, see core/schema.py
"""

import json
import os
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple

DB_FILE = Path(os.environ.get("DOCTRANSLATOR_DB", Path(__file__).parent.parent / "translations.db"))


def get_connection():
    """Get a database connection."""
    return sqlite3.connect(DB_FILE)


def _loads(value: Optional[str], default):
    if not value:
        return default
    return json.loads(value)


def _dumps(value) -> str:
    return json.dumps(value, ensure_ascii=False)


# ============================================================
# Translation Cache Operations
# ============================================================

def get_cached_translation(source_text: str, target_language: str) -> Optional[str]:
    """Get the most recent cached translation for (text, language)."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT translated_text FROM translation_cache
            WHERE source_text = ? AND target_language = ?
            ORDER BY id DESC LIMIT 1
        """, (source_text, target_language))
        row = cursor.fetchone()
        return row[0] if row else None


def add_cached_translation(source_text: str, target_language: str, translated_text: str):
    """Append a translation to the cache. Duplicate rows are tolerated."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO translation_cache (source_text, target_language, translated_text, created_at)
            VALUES (?, ?, ?, ?)
        """, (source_text, target_language, translated_text, datetime.now().isoformat()))
        conn.commit()


def count_cached_translations(target_language: str = None) -> int:
    with get_connection() as conn:
        cursor = conn.cursor()
        if target_language:
            cursor.execute("SELECT COUNT(*) FROM translation_cache WHERE target_language = ?", (target_language,))
        else:
            cursor.execute("SELECT COUNT(*) FROM translation_cache")
        return cursor.fetchone()[0]


# ============================================================
# Numeral Cache Operations
# ============================================================

def get_numeral_conversion(source_text: str, target_language: str) -> Optional[str]:
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT converted_text FROM numeral_cache
            WHERE source_text = ? AND target_language = ?
        """, (source_text, target_language))
        row = cursor.fetchone()
        return row[0] if row else None


def set_numeral_conversion(source_text: str, target_language: str, converted_text: str):
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT OR REPLACE INTO numeral_cache (source_text, target_language, converted_text, created_at)
            VALUES (?, ?, ?, ?)
        """, (source_text, target_language, converted_text, datetime.now().isoformat()))
        conn.commit()


def count_numeral_conversions() -> int:
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM numeral_cache")
        return cursor.fetchone()[0]


def clear_numeral_cache():
    """Delete all persisted numeral conversions."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM numeral_cache")
        conn.commit()


# ============================================================
# Rule Set Operations
# ============================================================

def get_rule_set(tenant_id: str) -> Optional[Dict[str, Any]]:
    """Get a tenant's rule set with JSON columns decoded."""
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM rule_sets WHERE tenant_id = ?", (tenant_id,))
        row = cursor.fetchone()
        if not row:
            return None
        result = dict(row)
        result['rules'] = _loads(result.get('rules'), [])
        result['content_types'] = _loads(result.get('content_types'), [])
        return result


def save_rule_set(tenant_id: str, version: str, rules: List[Dict[str, Any]], content_types: List[str]):
    """Insert or replace a tenant's rule set."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT OR REPLACE INTO rule_sets (tenant_id, version, rules, content_types, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """, (tenant_id, version, _dumps(rules), _dumps(content_types), datetime.now().isoformat()))
        conn.commit()


def get_all_tenant_ids() -> List[str]:
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT tenant_id FROM rule_sets ORDER BY tenant_id")
        return [row[0] for row in cursor.fetchall()]


# ============================================================
# Auto-Detection State Operations
# ============================================================

def get_detection_state(tenant_id: str) -> Optional[Dict[str, Any]]:
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM auto_detection_state WHERE tenant_id = ?", (tenant_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return {
            'tenant_id': row['tenant_id'],
            'pattern_frequency': _loads(row['pattern_frequency'], {}),
            'learned_patterns': _loads(row['learned_patterns'], []),
            'updated_at': row['updated_at'],
        }


def save_detection_state(tenant_id: str, pattern_frequency: Dict[str, int], learned_patterns: List[str]):
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT OR REPLACE INTO auto_detection_state (tenant_id, pattern_frequency, learned_patterns, updated_at)
            VALUES (?, ?, ?, ?)
        """, (tenant_id, _dumps(pattern_frequency), _dumps(learned_patterns), datetime.now().isoformat()))
        conn.commit()


def delete_detection_state(tenant_id: str):
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM auto_detection_state WHERE tenant_id = ?", (tenant_id,))
        conn.commit()


# ============================================================
# Document Operations
# ============================================================

def _decode_document(row: sqlite3.Row) -> Dict[str, Any]:
    document = dict(row)
    document['source_data'] = _loads(document.get('source_data'), {})
    document['translations'] = _loads(document.get('translations'), {})
    document['field_approval_status'] = _loads(document.get('field_approval_status'), {})
    document['source_changed'] = bool(document.get('source_changed'))
    return document


def get_document(document_id: str) -> Optional[Dict[str, Any]]:
    """Get a translated document by ID."""
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM documents WHERE document_id = ?", (document_id,))
        row = cursor.fetchone()
        return _decode_document(row) if row else None


def get_all_documents(model_name: str = None) -> List[Dict[str, Any]]:
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()
        if model_name:
            cursor.execute("SELECT * FROM documents WHERE model_name = ? ORDER BY document_id", (model_name,))
        else:
            cursor.execute("SELECT * FROM documents ORDER BY document_id")
        return [_decode_document(row) for row in cursor.fetchall()]


def save_document(document_id: str, model_name: str, source_language: str,
                  source_data: Dict[str, Any], translations: Dict[str, Any],
                  source_url: str = None, field_approval_status: Dict[str, Any] = None,
                  source_changed: bool = False):
    """Insert or update a translated document."""
    now = datetime.now().isoformat()
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO documents (document_id, model_name, source_url, source_language, source_data,
                                   translations, field_approval_status, source_changed, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(document_id) DO UPDATE SET
                model_name = excluded.model_name,
                source_url = excluded.source_url,
                source_language = excluded.source_language,
                source_data = excluded.source_data,
                translations = excluded.translations,
                field_approval_status = excluded.field_approval_status,
                source_changed = excluded.source_changed,
                updated_at = excluded.updated_at
        """, (document_id, model_name, source_url, source_language, _dumps(source_data),
              _dumps(translations), _dumps(field_approval_status or {}),
              1 if source_changed else 0, now, now))
        conn.commit()


def update_document_translations(document_id: str, translations: Dict[str, Any]):
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE documents SET translations = ?, updated_at = ?
            WHERE document_id = ?
        """, (_dumps(translations), datetime.now().isoformat(), document_id))
        conn.commit()


def update_document_approval_status(document_id: str, field_approval_status: Dict[str, Any]):
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE documents SET field_approval_status = ?, updated_at = ?
            WHERE document_id = ?
        """, (_dumps(field_approval_status), datetime.now().isoformat(), document_id))
        conn.commit()


def update_document_source(document_id: str, source_data: Dict[str, Any], source_changed: bool):
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE documents SET source_data = ?, source_changed = ?, updated_at = ?
            WHERE document_id = ?
        """, (_dumps(source_data), 1 if source_changed else 0, datetime.now().isoformat(), document_id))
        conn.commit()


def delete_document(document_id: str) -> bool:
    """Delete a document with its content index rows and approval references."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM content_index WHERE document_id = ?", (document_id,))
        cursor.execute("DELETE FROM documents WHERE document_id = ?", (document_id,))
        deleted = cursor.rowcount > 0
        conn.commit()
    remove_document_refs(document_id)
    return deleted


# ============================================================
# Content Index Operations
# ============================================================

def index_content(entries: List[Tuple[str, str, str, str]]):
    """
    Record where translated strings live.

    Args:
        entries: (content_hash, document_id, target_language, field_path) tuples
    """
    if not entries:
        return
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.executemany("""
            INSERT OR IGNORE INTO content_index (content_hash, document_id, target_language, field_path)
            VALUES (?, ?, ?, ?)
        """, entries)
        conn.commit()


def clear_content_index(document_id: str, target_language: str):
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            DELETE FROM content_index WHERE document_id = ? AND target_language = ?
        """, (document_id, target_language))
        conn.commit()


def find_content_refs(content_hash: str) -> List[Dict[str, str]]:
    """Get every (document_id, field_path) indexed under a content hash."""
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()
        cursor.execute("""
            SELECT document_id, target_language, field_path FROM content_index
            WHERE content_hash = ?
            ORDER BY document_id, field_path
        """, (content_hash,))
        return [dict(row) for row in cursor.fetchall()]


# ============================================================
# Field Approval Operations
# ============================================================

def get_field_approval(content_hash: str) -> Optional[Dict[str, Any]]:
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM field_approvals WHERE content_hash = ?", (content_hash,))
        row = cursor.fetchone()
        if not row:
            return None
        record = dict(row)
        record['document_refs'] = _loads(record.get('document_refs'), [])
        return record


def save_field_approval(record: Dict[str, Any]):
    """Insert or replace an approval record keyed by content hash."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT OR REPLACE INTO field_approvals (
                content_hash, original_text, translated_text, source_language, target_language,
                field_path, status, reviewed_by, reviewed_at, document_refs, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            record['content_hash'],
            record['original_text'],
            record['translated_text'],
            record['source_language'],
            record['target_language'],
            record.get('field_path'),
            record['status'],
            record.get('reviewed_by'),
            record.get('reviewed_at'),
            _dumps(record.get('document_refs', [])),
            record.get('created_at') or datetime.now().isoformat(),
        ))
        conn.commit()


def remove_document_refs(document_id: str) -> int:
    """
    Drop a document from every approval record's document_refs.

    Returns:
        Number of approval records updated
    """
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT content_hash, document_refs FROM field_approvals WHERE instr(document_refs, ?) > 0",
            (_dumps(document_id),),
        )
        updates = []
        for content_hash, refs_json in cursor.fetchall():
            refs = _loads(refs_json, [])
            if document_id in refs:
                updates.append((_dumps([r for r in refs if r != document_id]), content_hash))
        cursor.executemany("UPDATE field_approvals SET document_refs = ? WHERE content_hash = ?", updates)
        conn.commit()
        return len(updates)


def count_field_approvals_by_status() -> Dict[str, int]:
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT status, COUNT(*) FROM field_approvals GROUP BY status")
        return {row[0]: row[1] for row in cursor.fetchall()}


# ============================================================
# App Config CRUD Operations
# ============================================================

def get_app_config(key: str) -> Optional[str]:
    """Get a configuration value by key."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT value FROM app_config WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row[0] if row else None


def set_app_config(key: str, value: str):
    """Set a configuration value."""
    with get_connection() as conn:
        cursor = conn.cursor()
        # Ensure app_config table exists
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS app_config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        cursor.execute("""
            INSERT OR REPLACE INTO app_config (key, value, updated_at)
            VALUES (?, ?, ?)
        """, (key, value, datetime.now().isoformat()))
        conn.commit()
