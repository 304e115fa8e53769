"""
Reference root registry.

Roots imported with the ``reference`` strategy stay at their original location,
so the library remembers them in ``reference_roots.json`` under the library
root. Granting OS-level read access to those roots is left to the host
application; this registry only records which roots need it.
"""
from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List
from uuid import uuid4

from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

_MAX_STORE_BYTES = 1024 * 1024
_STORE_VERSION = 1


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _canonical_path_key(path_value: str) -> str:
    """Normalized key so that variants of one path are stored once."""
    expanded = os.path.expanduser(str(path_value or "").strip())
    return os.path.normcase(os.path.normpath(os.path.abspath(expanded)))


def _empty_store() -> Dict[str, Any]:
    return {"version": _STORE_VERSION, "roots": []}


class ReferenceRootRegistry:
    def __init__(self, store_path: str | Path):
        self.store_path = Path(store_path)
        self._lock = threading.Lock()

    def _read_store(self) -> Dict[str, Any]:
        path = self.store_path
        if not path.exists():
            return _empty_store()
        try:
            if path.stat().st_size > _MAX_STORE_BYTES:
                logger.warning("Reference roots store too large, ignoring: %s", path)
                return _empty_store()
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw) if raw else {}
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read reference roots store: %s", exc)
            return _empty_store()
        if not isinstance(data, dict):
            return _empty_store()
        roots = data.get("roots")
        if not isinstance(roots, list):
            roots = []
        return {"version": int(data.get("version") or _STORE_VERSION), "roots": roots}

    def _write_store(self, data: Dict[str, Any]) -> Result[bool]:
        path = self.store_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Atomic write: readers see either the old or the new file.
            payload = json.dumps(data, ensure_ascii=False, indent=2)
            tmp = path.with_name(path.name + f".tmp_{uuid4().hex}")
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            logger.warning("Failed to persist reference roots store: %s", exc)
            return Result.Err(ErrorCode.STORE_WRITE_FAILED, f"Failed to persist reference roots: {exc}")
        return Result.Ok(True)

    @staticmethod
    def _clean_rows(roots: List[Any]) -> List[Dict[str, Any]]:
        cleaned: List[Dict[str, Any]] = []
        for row in roots:
            if not isinstance(row, dict):
                continue
            path = str(row.get("path") or "").strip()
            if not path:
                continue
            cleaned.append(
                {
                    "id": str(row.get("id") or uuid4().hex),
                    "path": path,
                    "kind": "directory" if row.get("kind") == "directory" else "file",
                    "created_at": str(row.get("created_at") or ""),
                }
            )
        return cleaned

    def add(self, path: str | Path) -> Result[Dict[str, Any]]:
        """Record a referenced root. Adding a known root returns the existing row."""
        raw = str(path or "").strip()
        if not raw or "\x00" in raw:
            return Result.Err(ErrorCode.INVALID_INPUT, "Invalid reference root path")
        resolved = Path(raw).expanduser().resolve(strict=False)
        key = _canonical_path_key(str(resolved))
        with self._lock:
            store = self._read_store()
            roots = self._clean_rows(store["roots"])
            for row in roots:
                if _canonical_path_key(row["path"]) == key:
                    return Result.Ok(row, created=False)
            row = {
                "id": uuid4().hex,
                "path": str(resolved),
                "kind": "directory" if resolved.is_dir() else "file",
                "created_at": _utc_now_iso(),
            }
            roots.append(row)
            written = self._write_store({"version": _STORE_VERSION, "roots": roots})
            if not written.ok:
                return Result.Err(written.code, written.error or "Failed to persist reference roots")
        logger.debug("Recorded reference root %s", resolved)
        return Result.Ok(row, created=True)

    def list_roots(self) -> Result[List[Dict[str, Any]]]:
        with self._lock:
            return Result.Ok(self._clean_rows(self._read_store()["roots"]))

    def prune_missing(self) -> Result[int]:
        """Forget roots that no longer exist on disk. Returns the removed count."""
        with self._lock:
            roots = self._clean_rows(self._read_store()["roots"])
            kept = [r for r in roots if Path(r["path"]).exists()]
            removed = len(roots) - len(kept)
            if removed:
                written = self._write_store({"version": _STORE_VERSION, "roots": kept})
                if not written.ok:
                    return Result.Err(written.code, written.error or "Failed to persist reference roots")
                logger.info("Pruned %d missing reference root(s)", removed)
        return Result.Ok(removed)
