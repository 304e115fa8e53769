"""
Folder tree reconciliation.

``ensure(path)`` guarantees a FolderNode exists for a display path, creating
missing ancestors first. Lookups are memoized for the lifetime of one import
operation. Only the serialized commit phase may use a reconciler.
"""
from __future__ import annotations

from typing import Iterable

from ...config import ROOT_FOLDER_NAME
from ...path_utils import (
    ROOT_DISPLAY_PATH,
    display_path_components,
    join_display_path,
    normalize_display_path,
    parent_display_path,
)
from ...shared import CatalogRootMissingError, CoffeelibError, get_logger
from ..catalog.models import FolderNode
from ..catalog.store import CatalogStore

logger = get_logger(__name__)


async def ensure_root_folder(store: CatalogStore) -> tuple[FolderNode, bool]:
    """Fetch the catalog root, inserting it when absent. Returns (root, created)."""
    root = await store.fetch_folder(ROOT_DISPLAY_PATH)
    if root is not None:
        return root, False
    root = FolderNode(display_path=ROOT_DISPLAY_PATH, name=ROOT_FOLDER_NAME, parent=None)
    store.insert(root)
    return root, True


class FolderTreeReconciler:
    def __init__(self, store: CatalogStore, root: FolderNode):
        self.store = store
        self.root = root
        self.created_count = 0
        self._cache: dict[str, FolderNode] = {ROOT_DISPLAY_PATH: root}

    @classmethod
    async def create(cls, store: CatalogStore) -> "FolderTreeReconciler":
        """
        Raises:
            CatalogRootMissingError: the catalog has no root folder.
        """
        root = await store.fetch_folder(ROOT_DISPLAY_PATH)
        if root is None:
            raise CatalogRootMissingError("Catalog root folder is missing")
        return cls(store, root)

    async def _lookup(self, path: str) -> FolderNode | None:
        node = self._cache.get(path)
        if node is not None:
            return node
        node = await self.store.fetch_folder(path)
        if node is not None:
            self._cache[path] = node
        return node

    async def ensure(self, path: str) -> FolderNode:
        key = normalize_display_path(path)
        found = await self._lookup(key)
        if found is not None:
            return found

        # Collect missing ancestors up to the nearest existing one.
        missing = [key]
        parent: FolderNode | None = None
        current = key
        while parent is None:
            current = parent_display_path(current)
            parent = await self._lookup(current)
            if parent is None:
                missing.append(current)

        while missing:
            target = missing.pop()
            name = display_path_components(target)[-1]
            node = FolderNode(display_path=join_display_path(parent.display_path, name), name=name, parent=parent)
            self.store.insert(node)
            self._cache[target] = node
            self.created_count += 1
            logger.debug("Created folder %s", target)
            parent = node
        return parent

    async def ensure_many(self, paths: Iterable[str]) -> int:
        """Ensure every path (shortest first); failures are logged and skipped."""
        unique = {normalize_display_path(p) for p in paths}
        for path in sorted(unique, key=lambda p: (len(display_path_components(p)), p)):
            try:
                await self.ensure(path)
            except CoffeelibError as exc:
                logger.warning("Could not reconcile folder %s: %s", path, exc)
        return self.created_count
