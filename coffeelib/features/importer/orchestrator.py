"""
Import orchestrator, the entry point of the filesystem → catalog pipeline.

Per import:
    1. ensure the catalog root folder exists and persist it
    2. split roots into directories and loose files
    3. decide whether loose files are flattened into the catalog root
    4. per directory root (sequentially): enumerate, reconcile its folder set,
       fan out copy/probe tasks, join, apply the resulting Pending values
    5. per loose file: reconcile its folder, build, apply
    6. one final save

Catalog mutation only happens on the orchestrator coroutine after a join; the
fan-out tasks see nothing but the filesystem.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from ...config import IMPORT_CONCURRENCY, LOOSE_FILES_FOLDER_NAME
from ...library import LibraryLocation
from ...path_utils import ROOT_DISPLAY_PATH, join_display_path, relative_of
from ...shared import Strategy, classify_file, get_logger, log_structured
from ..bookmarks import ReferenceRootRegistry
from ..catalog.store import CatalogStore
from .fs_walker import FileSystemWalker
from .pending import Pending, PendingRecordBuilder
from .probe import MetadataProbe
from .reconciler import FolderTreeReconciler, ensure_root_folder
from .writer import CatalogWriter

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportResult:
    folders_indexed: int = 0
    items_indexed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"foldersIndexed": self.folders_indexed, "itemsIndexed": self.items_indexed}


def _top_name(path: Path) -> str:
    return path.name or LOOSE_FILES_FOLDER_NAME


def should_flatten(files: list[Path]) -> bool:
    """True when every loose file has the same direct parent directory."""
    if not files:
        return False
    return len({f.parent for f in files}) == 1


class ImportOrchestrator:
    def __init__(
        self,
        store: CatalogStore,
        library: LibraryLocation,
        probe: MetadataProbe,
        walker: Optional[FileSystemWalker] = None,
        registry: Optional[ReferenceRootRegistry] = None,
        concurrency: int = IMPORT_CONCURRENCY,
    ):
        self.store = store
        self.library = library
        self.probe = probe
        self.walker = walker or FileSystemWalker()
        self.registry = registry
        self.concurrency = max(1, int(concurrency))
        self._import_lock = asyncio.Lock()

    async def import_roots(self, roots: Iterable[str | Path], strategy: Strategy | str) -> ImportResult:
        """
        Import directories and loose files into the catalog.

        Idempotent for already cataloged content: a re-import inserts nothing.

        Raises:
            CatalogRootMissingError: the catalog root vanished after being ensured.
            CatalogSaveError: the final save failed; inserts stay pending.
        """
        strategy = Strategy.parse(strategy)
        async with self._import_lock:
            try:
                return await self._import_locked([Path(r).expanduser().resolve() for r in roots], strategy)
            except asyncio.CancelledError:
                self.store.rollback()
                logger.info("Import cancelled")
                raise

    async def _import_locked(self, roots: list[Path], strategy: Strategy) -> ImportResult:
        _root, created = await ensure_root_folder(self.store)
        if created:
            await self.store.save()
            logger.info("Created catalog root folder")

        reconciler = await FolderTreeReconciler.create(self.store)
        writer = CatalogWriter(self.store, reconciler)
        builder = PendingRecordBuilder(self.library, self.probe, strategy)
        if strategy is Strategy.COPY:
            await asyncio.to_thread(self.library.ensure_exists)

        directories, files = self._partition(roots)
        flatten = should_flatten(files)

        items = 0
        for directory in directories:
            items += await self._import_directory(directory, builder, writer, reconciler)

        for file in files:
            items += await self._import_file(file, flatten, builder, writer, reconciler)

        await self.store.save()

        if strategy is Strategy.REFERENCE and self.registry is not None:
            for root in directories + files:
                recorded = await asyncio.to_thread(self.registry.add, root)
                if not recorded.ok:
                    logger.warning("Could not record reference root %s: %s", root, recorded.error)

        result = ImportResult(folders_indexed=reconciler.created_count, items_indexed=items)
        log_structured(
            logger,
            logging.INFO,
            "Import finished",
            strategy=strategy.value,
            roots=len(directories) + len(files),
            **result.to_dict(),
        )
        return result

    @staticmethod
    def _partition(roots: list[Path]) -> tuple[list[Path], list[Path]]:
        directories: list[Path] = []
        files: list[Path] = []
        for root in roots:
            if root.is_dir():
                directories.append(root)
            elif root.is_file():
                files.append(root)
            else:
                logger.warning("Import root does not exist: %s", root)
        return directories, files

    async def _import_directory(
        self,
        directory: Path,
        builder: PendingRecordBuilder,
        writer: CatalogWriter,
        reconciler: FolderTreeReconciler,
    ) -> int:
        top_name = _top_name(directory)
        top_display = join_display_path(ROOT_DISPLAY_PATH, top_name)

        entries = await asyncio.to_thread(self.walker.enumerate, directory)
        folders = {top_display}
        folders.update(f"{top_display}/{relative_of(e.path, directory)}" for e in entries if e.is_dir)
        await reconciler.ensure_many(folders)

        candidates = []
        for entry in entries:
            if entry.is_dir:
                continue
            kind = classify_file(entry.path.name)
            if kind == "unknown":
                continue
            candidates.append((entry.path, kind == "video"))

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _build(path: Path, is_video: bool) -> Optional[Pending]:
            async with semaphore:
                return await builder.build(path, directory, top_name, top_display, is_video)

        results = await asyncio.gather(*(_build(p, v) for p, v in candidates), return_exceptions=True)

        pendings: list[Pending] = []
        for (path, _), res in zip(candidates, results):
            if isinstance(res, BaseException):
                logger.warning("Failed to prepare %s: %s", path, res)
            elif res is not None:
                pendings.append(res)
        pendings.sort(key=lambda p: p.relative_path)

        inserted = await writer.apply(pendings)
        logger.info(
            "Imported %s: %d file(s) found, %d new item(s)",
            top_display,
            len(candidates),
            inserted,
        )
        return inserted

    async def _import_file(
        self,
        file: Path,
        flatten: bool,
        builder: PendingRecordBuilder,
        writer: CatalogWriter,
        reconciler: FolderTreeReconciler,
    ) -> int:
        kind = classify_file(file.name)
        if kind == "unknown":
            logger.debug("Skipping unsupported file %s", file)
            return 0
        top_name = None if flatten else _top_name(file.parent)
        folder = join_display_path(ROOT_DISPLAY_PATH, top_name) if top_name else ROOT_DISPLAY_PATH
        await reconciler.ensure(folder)
        pending = await builder.build_single(file, top_name, kind == "video")
        if pending is None:
            return 0
        return await writer.apply([pending])
