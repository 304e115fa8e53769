"""
Pending record builder.

Runs in the concurrent phase of an import: it only touches the filesystem
(copy / locate + probe) and returns an immutable ``Pending`` descriptor that the
commit phase turns into a MediaRecord.
"""
from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...library import LibraryLocation
from ...path_utils import ROOT_DISPLAY_PATH, relative_of
from ...shared import Strategy, get_logger
from .probe import MetadataProbe

logger = get_logger(__name__)


@dataclass(frozen=True)
class Pending:
    relative_path: str
    parent_display_path: str
    filename: str
    is_video: bool
    width: int = 0
    height: int = 0
    duration: Optional[float] = None


def _copy_if_missing(src: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    if dest.exists():
        return
    shutil.copy2(src, dest)


class PendingRecordBuilder:
    def __init__(self, library: LibraryLocation, probe: MetadataProbe, strategy: Strategy):
        self.library = library
        self.probe = probe
        self.strategy = Strategy.parse(strategy)

    async def _locate(self, src: Path, relative_path: str) -> Optional[Path]:
        """Destination of ``src``: a copy under managed storage or the file itself."""
        if self.strategy is Strategy.REFERENCE:
            return src
        dest = self.library.resolve(relative_path)
        try:
            await asyncio.to_thread(_copy_if_missing, src, dest)
        except OSError as exc:
            logger.warning("Copy failed for %s -> %s: %s", src, dest, exc)
            return None
        return dest

    async def _finish(self, dest: Path, relative_path: str, parent_display: str, is_video: bool) -> Pending:
        meta = await self.probe.probe(dest, is_video)
        return Pending(
            relative_path=relative_path,
            parent_display_path=parent_display,
            filename=dest.name,
            is_video=is_video,
            width=meta.width,
            height=meta.height,
            duration=meta.duration if is_video else None,
        )

    async def build(
        self,
        src: Path,
        scanned_root: Path,
        top_name: str,
        top_display: str,
        is_video: bool,
    ) -> Optional[Pending]:
        """
        Descriptor for a file found under a directory root.

        ``relative_path`` is ``top_name/<path under scanned_root>``; the parent
        display path mirrors it, or is ``top_display`` for files directly in the
        scanned root. Returns ``None`` when the copy fails.
        """
        rel = relative_of(src, scanned_root)
        relative_path = f"{top_name}/{rel}" if rel else top_name
        if "/" in rel:
            parent_display = "/" + relative_path.rsplit("/", 1)[0]
        else:
            parent_display = top_display
        dest = await self._locate(Path(src), relative_path)
        if dest is None:
            return None
        return await self._finish(dest, relative_path, parent_display, is_video)

    async def build_single(self, file: Path, top_name: Optional[str], is_video: bool) -> Optional[Pending]:
        """
        Descriptor for a loose file. ``top_name`` is ``None`` when loose files
        are flattened into the catalog root.
        """
        file = Path(file)
        if top_name:
            relative_path = f"{top_name}/{file.name}"
            parent_display = f"/{top_name}"
        else:
            relative_path = file.name
            parent_display = ROOT_DISPLAY_PATH
        dest = await self._locate(file, relative_path)
        if dest is None:
            return None
        return await self._finish(dest, relative_path, parent_display, is_video)
