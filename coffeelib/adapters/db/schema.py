"""
Database schema and migrations.
"""
import re
from typing import List

from ...shared import Result, get_logger, log_success

logger = get_logger(__name__)

CURRENT_SCHEMA_VERSION = 2
# Schema version history:
# 1: folders + media tables
# 2: media.updated_at and browse indexes

SCHEMA_V1 = """
-- Metadata table for schema versioning
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Folder tree; the parent pointer is the only record of tree shape
CREATE TABLE IF NOT EXISTS folders (
    id TEXT PRIMARY KEY,
    display_path TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    parent_id TEXT REFERENCES folders(id),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Imported media items
CREATE TABLE IF NOT EXISTS media (
    id TEXT PRIMARY KEY,
    filename TEXT NOT NULL,
    relative_path TEXT NOT NULL UNIQUE,
    kind TEXT NOT NULL,  -- image, video
    pixel_width INTEGER NOT NULL DEFAULT 0,
    pixel_height INTEGER NOT NULL DEFAULT 0,
    duration REAL,  -- seconds, NULL for images
    folder_id TEXT NOT NULL REFERENCES folders(id),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

INDEXES = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_folders_single_root ON folders((parent_id IS NULL)) WHERE parent_id IS NULL;
CREATE INDEX IF NOT EXISTS idx_folders_parent ON folders(parent_id);
CREATE INDEX IF NOT EXISTS idx_media_folder ON media(folder_id);
"""

# Self-heal for older databases. ALTER TABLE cannot add a column with a non-constant default.
COLUMN_DEFINITIONS = {
    "folders": [
        ("parent_id", "parent_id TEXT REFERENCES folders(id)"),
        ("created_at", "created_at TIMESTAMP"),
    ],
    "media": [
        ("duration", "duration REAL"),
        ("created_at", "created_at TIMESTAMP"),
        ("updated_at", "updated_at TIMESTAMP"),
    ],
}

_SAFE_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _is_safe_identifier(value: str) -> bool:
    return bool(value and isinstance(value, str) and _SAFE_IDENT_RE.match(value))


async def _get_table_columns(db, table_name: str) -> Result[List[str]]:
    if not _is_safe_identifier(table_name):
        return Result.Err("INVALID_INPUT", f"Invalid table name: {table_name}")
    result = await db.aquery(f"PRAGMA table_info('{table_name}')")
    if not result.ok:
        return Result.Err("DB_ERROR", f"Unable to inspect {table_name}: {result.error}")
    return result.map(lambda rows: [row["name"] for row in rows])


async def table_has_column(db, table_name: str, column_name: str) -> bool:
    if not _is_safe_identifier(table_name) or not _is_safe_identifier(column_name):
        logger.warning("Invalid identifier in table_has_column: %s.%s", table_name, column_name)
        return False
    columns_result = await _get_table_columns(db, table_name)
    if not columns_result.ok:
        logger.warning("Unable to determine columns for %s.%s: %s", table_name, column_name, columns_result.error)
        return False
    return column_name in columns_result.unwrap_or([])


async def _ensure_column(db, table_name: str, column_name: str, definition: str) -> Result[bool]:
    columns_result = await _get_table_columns(db, table_name)
    if not columns_result.ok:
        return Result.Err(columns_result.code, columns_result.error or "Unable to inspect columns")
    if column_name in columns_result.unwrap_or([]):
        return Result.Ok(True)
    logger.info("Adding missing column %s.%s", table_name, column_name)
    alter_result = await db.aexecute(f"ALTER TABLE {table_name} ADD COLUMN {definition}")
    if not alter_result.ok:
        return Result.Err(alter_result.code, alter_result.error or "ALTER TABLE failed")
    return Result.Ok(True)


async def ensure_columns_exist(db) -> Result[bool]:
    for table, columns in COLUMN_DEFINITIONS.items():
        for column_name, definition in columns:
            result = await _ensure_column(db, table, column_name, definition)
            if not result.ok:
                logger.error("Failed to ensure column %s.%s: %s", table, column_name, result.error)
                return result
    return Result.Ok(True)


async def ensure_tables_exist(db) -> Result[bool]:
    logger.debug("Ensuring tables exist...")
    result = await db.aexecutescript(SCHEMA_V1)
    if not result.ok:
        logger.error("Failed to ensure base tables: %s", result.error)
    return result


async def ensure_indexes(db) -> Result[bool]:
    result = await db.aexecutescript(INDEXES)
    if not result.ok:
        logger.error("Failed to ensure indexes: %s", result.error)
    return result


async def _ensure_schema(db) -> Result[bool]:
    result = await ensure_tables_exist(db)
    if not result.ok:
        return result

    result = await ensure_columns_exist(db)
    if not result.ok:
        return result

    result = await ensure_indexes(db)
    if not result.ok:
        return result

    version_result = await db.aset_schema_version(CURRENT_SCHEMA_VERSION)
    if not version_result.ok:
        logger.error("Failed to set schema version: %s", version_result.error)
        return Result.Err(version_result.code, version_result.error or "Failed to set schema version")

    log_success(logger, f"Schema ensured (version {CURRENT_SCHEMA_VERSION})")
    return Result.Ok(True)


async def init_schema(db) -> Result[bool]:
    """
    Initialize the schema (useful for tests or first-time installs).
    """
    return await _ensure_schema(db)


async def migrate_schema(db) -> Result[bool]:
    """
    Bring an existing database up to the current version by ensuring the
    expected tables, columns and indexes exist.
    """
    current_version = await db.aget_schema_version()
    logger.debug("Ensuring schema (current version %s -> target %s)", current_version, CURRENT_SCHEMA_VERSION)

    repair_result = await _ensure_schema(db)
    if not repair_result.ok:
        return repair_result

    final_version = await db.aget_schema_version()
    if current_version and current_version != final_version:
        log_success(logger, f"Schema migrated from version {current_version} to {final_version}")
    return Result.Ok(True)
