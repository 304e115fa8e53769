"""
Configuration for coffeelib.

Every value can be overridden through a ``COFFEELIB_*`` environment variable.
Nothing here touches the filesystem; directories are created by
``LibraryLocation.ensure_exists()``.
"""
import logging
import os
from pathlib import Path

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


def _resolve_library_root() -> Path:
    env_path = _env_raw("COFFEELIB_LIBRARY_ROOT")
    if env_path:
        try:
            return Path(env_path).expanduser().resolve()
        except (OSError, RuntimeError):
            logger.warning("Failed to resolve COFFEELIB_LIBRARY_ROOT: %s, using default", env_path)
    return Path.home() / "Pictures" / "CaffeinOverdose.coffeelib"


def get_runtime_library_root() -> Path:
    """
    Resolve the library root at call time.

    Priority:
    1) live override from COFFEELIB_LIBRARY_ROOT
    2) import-time LIBRARY_ROOT
    """
    env_path = _env_raw("COFFEELIB_LIBRARY_ROOT")
    if env_path:
        try:
            return Path(env_path).expanduser().resolve()
        except (OSError, RuntimeError):
            pass
    return LIBRARY_ROOT


LIBRARY_ROOT = _resolve_library_root()

# Library layout (relative to the library root)
MEDIA_DIR_NAME = "media"
THUMBS_DIR_NAME = "thumbs"
CATALOG_DB_NAME = "catalog.sqlite"
REFERENCE_ROOTS_FILE_NAME = "reference_roots.json"

# Catalog root folder
ROOT_FOLDER_NAME = "Library"
# Folder used for loose files whose parent directory has no name
LOOSE_FILES_FOLDER_NAME = "Imports"

# External tools
FFPROBE_BIN = _env_raw("COFFEELIB_FFPROBE_PATH", "COFFEELIB_FFPROBE_BIN", default="ffprobe")
FFPROBE_TIMEOUT = _env_int(10, "COFFEELIB_FFPROBE_TIMEOUT", min_value=1, max_value=120)

# Import fan-out (concurrent copy/probe tasks per directory root)
IMPORT_CONCURRENCY = _env_int(8, "COFFEELIB_IMPORT_CONCURRENCY", min_value=1, max_value=64)

# Database tuning
DB_TIMEOUT = _env_float(30.0, "COFFEELIB_DB_TIMEOUT", min_value=1.0, max_value=300.0)
DB_QUERY_TIMEOUT = _env_float(60.0, "COFFEELIB_DB_QUERY_TIMEOUT", min_value=1.0, max_value=600.0)

# HTTP server
HTTP_HOST = _env_raw("COFFEELIB_HOST", default="127.0.0.1") or "127.0.0.1"
HTTP_PORT = _env_int(8765, "COFFEELIB_PORT", min_value=1, max_value=65535)
MAX_JSON_BYTES = _env_int(1024 * 1024, "COFFEELIB_MAX_JSON_BYTES", min_value=1024, max_value=64 * 1024 * 1024)

DEBUG = _env_bool(False, "COFFEELIB_DEBUG")

# Directory enumeration pacing (entries per second, 0 disables)
SCAN_IOPS_LIMIT = _env_float(0.0, "COFFEELIB_SCAN_IOPS_LIMIT", min_value=0.0, max_value=100000.0)
