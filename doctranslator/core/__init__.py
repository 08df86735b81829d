"""
Core module - sqlite persistence

This module provides:
- database: CRUD operations for caches, rule sets, documents and approvals
- schema: Database initialization and migrations
"""

from doctranslator.core.database import (
    DB_FILE,
    get_connection,
    get_app_config,
    set_app_config,
)

from doctranslator.core.schema import (
    DB_VERSION,
    get_db_version,
    set_db_version,
    initialize_database,
    ensure_all_schemas,
    migrate_database,
)
