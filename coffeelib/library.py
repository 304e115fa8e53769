"""
Managed library layout on disk.

    <root>/
        media/                 copied content (``copy`` strategy)
        thumbs/                thumbnail cache (owned by the UI layer)
        catalog.sqlite         folder + media catalog
        reference_roots.json   roots imported with the ``reference`` strategy
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import (
    CATALOG_DB_NAME,
    MEDIA_DIR_NAME,
    REFERENCE_ROOTS_FILE_NAME,
    THUMBS_DIR_NAME,
    get_runtime_library_root,
)
from .shared import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LibraryLocation:
    root: Path

    @classmethod
    def default(cls) -> "LibraryLocation":
        return cls(get_runtime_library_root())

    @property
    def media(self) -> Path:
        return self.root / MEDIA_DIR_NAME

    @property
    def thumbs(self) -> Path:
        return self.root / THUMBS_DIR_NAME

    @property
    def db_path(self) -> Path:
        return self.root / CATALOG_DB_NAME

    @property
    def reference_roots_file(self) -> Path:
        return self.root / REFERENCE_ROOTS_FILE_NAME

    def ensure_exists(self) -> None:
        """Create the library directories if missing."""
        for directory in (self.root, self.media, self.thumbs):
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                logger.debug("Created library directory %s", directory)

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute location of a catalog relative path inside managed storage.

        ``.`` and ``..`` components are dropped, so the result never leaves ``media/``.
        """
        return self.media.joinpath(*[p for p in relative_path.split("/") if p not in ("", ".", "..")])
