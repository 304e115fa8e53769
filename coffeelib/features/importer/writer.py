"""
Catalog writer: applies a batch of Pending descriptors serially.
"""
from __future__ import annotations

from typing import Iterable

from ...shared import CoffeelibError, get_logger
from ..catalog.models import MediaRecord
from ..catalog.store import CatalogStore
from .pending import Pending
from .reconciler import FolderTreeReconciler

logger = get_logger(__name__)


class CatalogWriter:
    def __init__(self, store: CatalogStore, reconciler: FolderTreeReconciler):
        self.store = store
        self.reconciler = reconciler

    async def apply(self, pendings: Iterable[Pending]) -> int:
        """Insert a MediaRecord per new relative path. Returns the inserted count."""
        inserted = 0
        for pending in pendings:
            try:
                if await self._apply_one(pending):
                    inserted += 1
            except CoffeelibError as exc:
                logger.warning("Skipping %s: %s", pending.relative_path, exc)
        return inserted

    async def _apply_one(self, pending: Pending) -> bool:
        folder = await self.reconciler.ensure(pending.parent_display_path)
        if await self.store.fetch_media_record(pending.relative_path) is not None:
            return False
        self.store.insert(
            MediaRecord(
                filename=pending.filename,
                relative_path=pending.relative_path,
                kind="video" if pending.is_video else "image",
                pixel_width=pending.width,
                pixel_height=pending.height,
                duration=pending.duration if pending.is_video else None,
                folder=folder,
            )
        )
        return True
