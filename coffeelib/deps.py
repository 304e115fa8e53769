"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""
from __future__ import annotations

import asyncio

from .adapters.db.schema import migrate_schema
from .adapters.db.sqlite import Sqlite
from .adapters.tools import FFProbe
from .config import DB_TIMEOUT, FFPROBE_BIN, FFPROBE_TIMEOUT, IMPORT_CONCURRENCY
from .features.bookmarks import ReferenceRootRegistry
from .features.catalog import CatalogStore
from .features.importer import FileSystemWalker, ImportOrchestrator, MetadataProbe
from .library import LibraryLocation
from .shared import ErrorCode, Result, get_logger, log_success

logger = get_logger(__name__)


def _prepare_library_or_error(library: LibraryLocation) -> Result[LibraryLocation]:
    try:
        library.ensure_exists()
    except OSError as exc:
        logger.error("Failed to initialize library directories: %s", exc)
        return Result.Err(ErrorCode.DB_ERROR, f"Failed to initialize library directories: {exc}")
    return Result.Ok(library)


async def _migrate_db_or_error(db: Sqlite) -> Result[bool]:
    migrate_result = await migrate_schema(db)
    if not migrate_result.ok:
        logger.error("Schema migration failed: %s", migrate_result.error)
        return Result.Err(migrate_result.code or ErrorCode.DB_ERROR, f"Failed to initialize database: {migrate_result.error}")
    return Result.Ok(True)


def _log_tool_availability(ffprobe: FFProbe) -> None:
    if ffprobe.is_available():
        log_success(logger, "ffprobe is available")
    else:
        logger.warning("ffprobe not found - video metadata falls back to hachoir")


async def _prune_reference_roots(registry: ReferenceRootRegistry) -> None:
    pruned = await asyncio.to_thread(registry.prune_missing)
    if not pruned.ok:
        logger.warning("Could not prune reference roots: %s", pruned.error)
        return
    logger.debug("Reference roots pruned at startup: %d", pruned.data)


async def build_services(library: LibraryLocation | None = None, concurrency: int = IMPORT_CONCURRENCY) -> Result[dict]:
    """
    Build all services (DI container).

    Args:
        library: Library location (default: from config.LIBRARY_ROOT)
        concurrency: Max concurrent copy/probe tasks per directory root

    Returns:
        Result[dict] of service instances
    """
    library = library or LibraryLocation.default()
    logger.info("Building services for library %s", library.root)

    prepared = _prepare_library_or_error(library)
    if not prepared.ok:
        return Result.Err(prepared.code, prepared.error or "Failed to initialize library")

    db = Sqlite(library.db_path, timeout=DB_TIMEOUT)
    migrated = await _migrate_db_or_error(db)
    if not migrated.ok:
        await db.aclose()
        return Result.Err(migrated.code, migrated.error or "Failed to initialize database")

    ffprobe = FFProbe(bin_name=FFPROBE_BIN or "ffprobe", timeout=FFPROBE_TIMEOUT)
    _log_tool_availability(ffprobe)

    probe = MetadataProbe(ffprobe)
    store = CatalogStore(db)
    registry = ReferenceRootRegistry(library.reference_roots_file)
    await _prune_reference_roots(registry)
    importer = ImportOrchestrator(
        store,
        library,
        probe,
        walker=FileSystemWalker(),
        registry=registry,
        concurrency=concurrency,
    )

    log_success(logger, "Services ready")
    return Result.Ok(
        {
            "library": library,
            "db": db,
            "ffprobe": ffprobe,
            "probe": probe,
            "store": store,
            "registry": registry,
            "importer": importer,
        }
    )


async def dispose_services(services: dict | None) -> None:
    """Close the database connection held by a services dict."""
    if not services:
        return
    db = services.get("db")
    if db is not None:
        await db.aclose()
        logger.debug("Database connection closed")
