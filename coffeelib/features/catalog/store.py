"""
Catalog store: fetch / insert / save over the sqlite adapter.

The store is a unit of work. ``insert()`` only registers an object; it becomes
durable when ``save()`` commits every pending insert in one transaction. Until
then pending objects are visible to the fetch methods, so a caller that
fetches before creating never produces a duplicate. A failed save leaves the
inserts pending for a later attempt.

Loaded and inserted objects are kept in an identity map: fetching the same
display path or relative path twice returns the same instance.

Single writer: one store instance must only be mutated from one task.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from ...adapters.db.sqlite import Sqlite
from ...path_utils import ROOT_DISPLAY_PATH, normalize_display_path
from ...shared import CatalogSaveError, CatalogStoreError, get_logger
from .models import FolderNode, MediaRecord

logger = get_logger(__name__)

CatalogObject = Union[FolderNode, MediaRecord]

_FOLDER_COLUMNS = "id, display_path, name, parent_id, created_at"
_MEDIA_COLUMNS = (
    "id, filename, relative_path, kind, pixel_width, pixel_height, duration, folder_id, created_at, updated_at"
)


def _parse_ts(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value))
    except (TypeError, ValueError):
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _fmt_ts(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


class CatalogStore:
    def __init__(self, db: Sqlite):
        self.db = db
        self._folders_by_id: dict[str, FolderNode] = {}
        self._folders_by_path: dict[str, FolderNode] = {}
        self._media_by_path: dict[str, MediaRecord] = {}
        self._pending: list[CatalogObject] = []

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @property
    def has_changes(self) -> bool:
        return bool(self._pending)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def insert(self, obj: CatalogObject) -> None:
        """Register a new folder or media record; it is written by ``save()``."""
        if isinstance(obj, FolderNode):
            self._insert_folder(obj)
        elif isinstance(obj, MediaRecord):
            self._insert_media(obj)
        else:
            raise TypeError(f"Cannot insert {type(obj).__name__} into the catalog")
        self._pending.append(obj)

    def _insert_folder(self, folder: FolderNode) -> None:
        key = normalize_display_path(folder.display_path)
        if key in self._folders_by_path:
            raise CatalogStoreError(f"Folder already exists: {key}")
        if folder.parent is None and key != ROOT_DISPLAY_PATH:
            raise CatalogStoreError(f"Only the root folder may have no parent: {key}")
        if folder.parent is not None and folder.parent.id not in self._folders_by_id:
            raise CatalogStoreError(f"Parent of {key} is not part of the catalog")
        self._folders_by_id[folder.id] = folder
        self._folders_by_path[key] = folder

    def _insert_media(self, record: MediaRecord) -> None:
        if record.relative_path in self._media_by_path:
            raise CatalogStoreError(f"Media record already exists: {record.relative_path}")
        if record.folder.id not in self._folders_by_id:
            raise CatalogStoreError(f"Folder of {record.relative_path} is not part of the catalog")
        self._media_by_path[record.relative_path] = record

    def rollback(self) -> None:
        """Discard every pending insert."""
        for obj in self._pending:
            if isinstance(obj, FolderNode):
                self._folders_by_id.pop(obj.id, None)
                self._folders_by_path.pop(normalize_display_path(obj.display_path), None)
            else:
                self._media_by_path.pop(obj.relative_path, None)
        if self._pending:
            logger.info("Discarded %d unsaved catalog insert(s)", len(self._pending))
        self._pending = []

    async def save(self) -> None:
        """
        Commit all pending inserts in one transaction.

        Raises:
            CatalogSaveError: the transaction failed; inserts stay pending.
        """
        if not self._pending:
            return
        pending = list(self._pending)
        folders = sorted(
            (o for o in pending if isinstance(o, FolderNode)),
            key=lambda f: f.display_path.count("/") if f.display_path != ROOT_DISPLAY_PATH else 0,
        )
        media = [o for o in pending if isinstance(o, MediaRecord)]

        async with self.db.atransaction(mode="immediate") as tx:
            if not tx.ok:
                raise CatalogSaveError(tx.error or "Failed to begin transaction")
            await self._write_many(
                f"INSERT INTO folders ({_FOLDER_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                [
                    (folder.id, folder.display_path, folder.name, folder.parent_id, _fmt_ts(folder.created_at))
                    for folder in folders
                ],
            )
            await self._write_many(
                f"INSERT INTO media ({_MEDIA_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        record.id,
                        record.filename,
                        record.relative_path,
                        record.kind,
                        int(record.pixel_width),
                        int(record.pixel_height),
                        record.duration,
                        record.folder.id,
                        _fmt_ts(record.created_at),
                        _fmt_ts(record.updated_at),
                    )
                    for record in media
                ],
            )
        if not tx.ok:
            raise CatalogSaveError(tx.error or "Commit failed")

        self._pending = self._pending[len(pending):]
        logger.debug("Saved %d folder(s) and %d media record(s)", len(folders), len(media))

    async def _write_many(self, sql: str, rows: list[tuple]) -> None:
        # Rows run in order; folders are sorted parents first.
        res = await self.db.aexecutemany(sql, rows)
        if not res.ok:
            raise CatalogSaveError(res.error or "Catalog write failed")

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def _query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        res = await self.db.aquery(sql, params)
        if not res.ok:
            raise CatalogStoreError(res.error or "Catalog query failed")
        return list(res.data or [])

    async def fetch_folder(self, display_path: str) -> Optional[FolderNode]:
        key = normalize_display_path(display_path)
        cached = self._folders_by_path.get(key)
        if cached is not None:
            return cached
        rows = await self._query(f"SELECT {_FOLDER_COLUMNS} FROM folders WHERE display_path = ? LIMIT 1", (key,))
        if not rows:
            return None
        return await self._materialize_folder(rows[0])

    async def fetch_folder_by_id(self, folder_id: str) -> Optional[FolderNode]:
        cached = self._folders_by_id.get(folder_id)
        if cached is not None:
            return cached
        rows = await self._query(f"SELECT {_FOLDER_COLUMNS} FROM folders WHERE id = ? LIMIT 1", (folder_id,))
        if not rows:
            return None
        return await self._materialize_folder(rows[0])

    async def _materialize_folder(self, row: dict[str, Any]) -> FolderNode:
        # Walk up until a known ancestor (or the root), then build top-down.
        chain = [row]
        parent_id = row.get("parent_id")
        while parent_id and parent_id not in self._folders_by_id:
            rows = await self._query(f"SELECT {_FOLDER_COLUMNS} FROM folders WHERE id = ? LIMIT 1", (parent_id,))
            if not rows:
                raise CatalogStoreError(f"Folder {row.get('display_path')} has a missing ancestor {parent_id}")
            chain.append(rows[0])
            parent_id = rows[0].get("parent_id")

        node: Optional[FolderNode] = None
        for item in reversed(chain):
            existing = self._folders_by_id.get(item["id"])
            if existing is not None:
                node = existing
                continue
            pid = item.get("parent_id")
            parent = self._folders_by_id.get(pid) if pid else None
            node = FolderNode(
                display_path=item["display_path"],
                name=item["name"],
                parent=parent,
                id=item["id"],
                created_at=_parse_ts(item.get("created_at")),
            )
            self._folders_by_id[node.id] = node
            self._folders_by_path[normalize_display_path(node.display_path)] = node
        assert node is not None
        return node

    async def fetch_media_record(self, relative_path: str) -> Optional[MediaRecord]:
        cached = self._media_by_path.get(relative_path)
        if cached is not None:
            return cached
        rows = await self._query(f"SELECT {_MEDIA_COLUMNS} FROM media WHERE relative_path = ? LIMIT 1", (relative_path,))
        if not rows:
            return None
        return await self._materialize_media(rows[0])

    async def _materialize_media(self, row: dict[str, Any]) -> MediaRecord:
        existing = self._media_by_path.get(row["relative_path"])
        if existing is not None:
            return existing
        folder = await self.fetch_folder_by_id(row["folder_id"])
        if folder is None:
            raise CatalogStoreError(f"Media {row['relative_path']} points at a missing folder")
        duration = row.get("duration")
        record = MediaRecord(
            filename=row["filename"],
            relative_path=row["relative_path"],
            kind=row["kind"],
            pixel_width=int(row.get("pixel_width") or 0),
            pixel_height=int(row.get("pixel_height") or 0),
            duration=float(duration) if duration is not None else None,
            folder=folder,
            id=row["id"],
            created_at=_parse_ts(row.get("created_at")),
            updated_at=_parse_ts(row.get("updated_at") or row.get("created_at")),
        )
        self._media_by_path[record.relative_path] = record
        return record

    # ------------------------------------------------------------------
    # Browse (children are derived from parent references)
    # ------------------------------------------------------------------

    def _pending_of(self, kind: type) -> list[Any]:
        return [o for o in self._pending if isinstance(o, kind)]

    async def list_subfolders(self, folder: FolderNode) -> list[FolderNode]:
        rows = await self._query(
            f"SELECT {_FOLDER_COLUMNS} FROM folders WHERE parent_id = ? ORDER BY name COLLATE NOCASE",
            (folder.id,),
        )
        out = [await self._materialize_folder(r) for r in rows]
        seen = {f.id for f in out}
        out.extend(f for f in self._pending_of(FolderNode) if f.parent is folder and f.id not in seen)
        return sorted(out, key=lambda f: f.name.lower())

    async def list_media(self, folder: FolderNode) -> list[MediaRecord]:
        rows = await self._query(
            f"SELECT {_MEDIA_COLUMNS} FROM media WHERE folder_id = ? ORDER BY filename COLLATE NOCASE",
            (folder.id,),
        )
        out = [await self._materialize_media(r) for r in rows]
        seen = {m.id for m in out}
        out.extend(m for m in self._pending_of(MediaRecord) if m.folder is folder and m.id not in seen)
        return sorted(out, key=lambda m: m.filename.lower())

    async def count_folders(self) -> int:
        rows = await self._query("SELECT COUNT(*) AS n FROM folders")
        return int(rows[0]["n"]) + len(self._pending_of(FolderNode))

    async def count_media(self) -> int:
        rows = await self._query("SELECT COUNT(*) AS n FROM media")
        return int(rows[0]["n"]) + len(self._pending_of(MediaRecord))

    async def all_folders(self) -> list[FolderNode]:
        rows = await self._query(f"SELECT {_FOLDER_COLUMNS} FROM folders ORDER BY display_path")
        out = [await self._materialize_folder(r) for r in rows]
        out.extend(self._pending_of(FolderNode))
        return out

    async def all_relative_paths(self) -> set[str]:
        rows = await self._query("SELECT relative_path FROM media")
        paths = {str(r["relative_path"]) for r in rows}
        paths.update(m.relative_path for m in self._pending_of(MediaRecord))
        return paths
