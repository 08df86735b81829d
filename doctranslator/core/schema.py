"""
Database Schema Management Module

This module handles database initialization, schema validation, and migrations.
For CRUD operations, see core/database.py
"""

import sqlite3

# Import database module to use DB_FILE and get_connection dynamically
# This ensures monkeypatching in tests works correctly
import doctranslator.core.database as db

DB_VERSION = 3  # Increment when schema changes (source_changed column in v3)

TABLES = {
    "translation_cache": """
        CREATE TABLE IF NOT EXISTS translation_cache (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            source_text TEXT NOT NULL,
            target_language TEXT NOT NULL,
            translated_text TEXT NOT NULL,
            created_at TIMESTAMP
        )
    """,
    "numeral_cache": """
        CREATE TABLE IF NOT EXISTS numeral_cache (
            source_text TEXT NOT NULL,
            target_language TEXT NOT NULL,
            converted_text TEXT NOT NULL,
            created_at TIMESTAMP,
            PRIMARY KEY (source_text, target_language)
        )
    """,
    "rule_sets": """
        CREATE TABLE IF NOT EXISTS rule_sets (
            tenant_id TEXT PRIMARY KEY,
            version TEXT NOT NULL DEFAULT '1.0.0',
            rules TEXT NOT NULL DEFAULT '[]',
            content_types TEXT NOT NULL DEFAULT '[]',
            updated_at TIMESTAMP
        )
    """,
    "auto_detection_state": """
        CREATE TABLE IF NOT EXISTS auto_detection_state (
            tenant_id TEXT PRIMARY KEY,
            pattern_frequency TEXT NOT NULL DEFAULT '{}',
            learned_patterns TEXT NOT NULL DEFAULT '[]',
            updated_at TIMESTAMP
        )
    """,
    "documents": """
        CREATE TABLE IF NOT EXISTS documents (
            document_id TEXT PRIMARY KEY,
            model_name TEXT NOT NULL,
            source_url TEXT,
            source_language TEXT NOT NULL,
            source_data TEXT NOT NULL,
            translations TEXT NOT NULL DEFAULT '{}',
            field_approval_status TEXT NOT NULL DEFAULT '{}',
            source_changed INTEGER DEFAULT 0,
            created_at TIMESTAMP,
            updated_at TIMESTAMP
        )
    """,
    "content_index": """
        CREATE TABLE IF NOT EXISTS content_index (
            content_hash TEXT NOT NULL,
            document_id TEXT NOT NULL,
            target_language TEXT NOT NULL,
            field_path TEXT NOT NULL
        )
    """,
    "field_approvals": """
        CREATE TABLE IF NOT EXISTS field_approvals (
            content_hash TEXT PRIMARY KEY,
            original_text TEXT NOT NULL,
            translated_text TEXT NOT NULL,
            source_language TEXT NOT NULL,
            target_language TEXT NOT NULL,
            field_path TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            reviewed_by TEXT,
            reviewed_at TIMESTAMP,
            document_refs TEXT NOT NULL DEFAULT '[]',
            created_at TIMESTAMP
        )
    """,
    "app_config": """
        CREATE TABLE IF NOT EXISTS app_config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
}


def get_connection():
    """Get a database connection using the database module's DB_FILE."""
    return db.get_connection()


def get_db_version() -> int:
    """Get current database version."""
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT version FROM db_version LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else 0
    except sqlite3.OperationalError:
        return 0


def set_db_version(version: int):
    """Set database version."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("CREATE TABLE IF NOT EXISTS db_version (version INTEGER)")
        cursor.execute("DELETE FROM db_version")
        cursor.execute("INSERT INTO db_version (version) VALUES (?)", (version,))
        conn.commit()


def initialize_database():
    """Initializes the database and creates the tables."""
    from doctranslator.logger import get_logger
    logger = get_logger(__name__)

    if db.DB_FILE.exists():
        current_version = get_db_version()
        if current_version < DB_VERSION:
            migrate_database(current_version, DB_VERSION)
        elif current_version == DB_VERSION:
            try:
                ensure_all_schemas()
            except sqlite3.Error as e:
                logger.warning(f"Failed to verify database schema: {e}")
        return

    db.DB_FILE.parent.mkdir(parents=True, exist_ok=True)
    with get_connection() as conn:
        cursor = conn.cursor()
        for table_name, ddl in TABLES.items():
            logger.debug(f"Creating table {table_name}")
            cursor.execute(ddl)
        conn.commit()

    ensure_database_indexes()
    set_db_version(DB_VERSION)
    logger.info(f"Database created at {db.DB_FILE} (version {DB_VERSION})")


# ============================================================
# Database Schema Validation
# ============================================================

def ensure_tables():
    """Create any table missing from an existing database."""
    with get_connection() as conn:
        cursor = conn.cursor()
        for ddl in TABLES.values():
            cursor.execute(ddl)
        conn.commit()


def ensure_documents_schema():
    """
    Ensure documents table has all required columns.
    This function should be called during database initialization/migration.
    """
    from doctranslator.logger import get_logger
    logger = get_logger(__name__)

    try:
        with get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("PRAGMA table_info(documents)")
            existing_cols = {row[1] for row in cursor.fetchall()}

            if "source_changed" not in existing_cols:
                logger.info("Adding source_changed column to documents table")
                cursor.execute("ALTER TABLE documents ADD COLUMN source_changed INTEGER DEFAULT 0")

            if "field_approval_status" not in existing_cols:
                logger.info("Adding field_approval_status column to documents table")
                cursor.execute("ALTER TABLE documents ADD COLUMN field_approval_status TEXT NOT NULL DEFAULT '{}'")

            conn.commit()
    except sqlite3.Error as e:
        logger.error(f"Failed to ensure documents schema: {e}")
        raise


def ensure_database_indexes():
    """
    Create lookup indexes.

    The translation cache index is deliberately non-unique: concurrent sessions
    may insert the same (text, language) pair and readers take the newest row.
    """
    from doctranslator.logger import get_logger
    logger = get_logger(__name__)

    try:
        with get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_translation_cache_lookup
                ON translation_cache(source_text, target_language)
            """)

            cursor.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_content_index_unique
                ON content_index(content_hash, document_id, target_language, field_path)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_content_index_document
                ON content_index(document_id, target_language)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_field_approvals_status
                ON field_approvals(status)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_model
                ON documents(model_name)
            """)

            conn.commit()
            logger.debug("Database indexes created/verified successfully")

    except sqlite3.Error as e:
        logger.error(f"Failed to ensure database indexes: {e}")
        raise


def ensure_all_schemas():
    """
    Ensure all tables have all required columns and indexes.
    This is a convenience function that calls all individual schema validation functions.
    """
    ensure_tables()
    ensure_documents_schema()
    ensure_database_indexes()


# ============================================================
# Database Migration
# ============================================================

def migrate_database(from_version: int, to_version: int):
    """
    Migrate database from one version to another.

    Every migration so far only adds tables, columns or indexes, so bringing
    the schema up to date is enough.
    """
    from doctranslator.logger import get_logger
    logger = get_logger(__name__)

    logger.info(f"Migrating database from version {from_version} to {to_version}")
    ensure_all_schemas()
    set_db_version(to_version)
    logger.info(f"Database migration completed: now at version {to_version}")
