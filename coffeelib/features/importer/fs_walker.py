"""
FileSystemWalker: enumerates a directory root once for an import.

Enumeration is synchronous: the walk completes before any folder is reconciled
or any file is probed. Hidden entries (dot-prefixed) are skipped, and hidden
directories are not descended into.
"""
import os
import time
from dataclasses import dataclass
from pathlib import Path

from ...config import SCAN_IOPS_LIMIT
from ...path_utils import is_hidden_name
from ...shared import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FsEntry:
    path: Path
    is_dir: bool


class FileSystemWalker:
    """
    Iterative scandir walk with optional I/O pacing (SCAN_IOPS_LIMIT).
    """

    def __init__(self, scan_iops_limit: float = SCAN_IOPS_LIMIT) -> None:
        self._scan_iops_limit = float(scan_iops_limit or 0.0)
        self._scan_iops_next_ts = 0.0

    def _scan_iops_wait(self) -> None:
        limit = self._scan_iops_limit
        if limit <= 0.0:
            return
        now = time.perf_counter()
        next_ts = self._scan_iops_next_ts
        if next_ts > now:
            time.sleep(next_ts - now)
            now = time.perf_counter()
        self._scan_iops_next_ts = max(next_ts, now) + 1.0 / limit

    def enumerate(self, root: Path) -> list[FsEntry]:
        """
        All non-hidden descendants of ``root`` (files and directories).

        Unreadable directories are logged and skipped. Symlinks to files are listed
        like regular files; symlinked directories are skipped entirely.
        """
        self._scan_iops_next_ts = 0.0
        entries: list[FsEntry] = []
        # Iterative scandir is faster than os.walk on large trees and avoids recursion limits.
        stack: list[Path] = [Path(root)]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    for entry in it:
                        self._scan_iops_wait()
                        if is_hidden_name(entry.name):
                            continue
                        found = self._entry(entry)
                        if found is None:
                            continue
                        entries.append(found)
                        if found.is_dir:
                            stack.append(found.path)
            except OSError as exc:
                logger.warning("Cannot enumerate %s: %s", current, exc)
                continue
        entries.sort(key=lambda e: str(e.path))
        return entries

    @staticmethod
    def _entry(entry: os.DirEntry) -> FsEntry | None:
        try:
            if entry.is_dir(follow_symlinks=False):
                return FsEntry(Path(entry.path), True)
            if entry.is_file(follow_symlinks=True):
                return FsEntry(Path(entry.path), False)
        except OSError:
            return None
        return None
