"""
Catalog records: folder nodes and media records.

Both are immutable once constructed. A folder's ``parent`` reference is the
only record of tree shape; children are always found by querying.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ...path_utils import ROOT_DISPLAY_PATH
from ...shared import MediaKind


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=False)
class FolderNode:
    display_path: str
    name: str
    parent: Optional["FolderNode"]
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def parent_id(self) -> Optional[str]:
        return self.parent.id if self.parent is not None else None

    def ancestors(self) -> list["FolderNode"]:
        """Parent chain from the immediate parent up to the root."""
        chain: list[FolderNode] = []
        node = self.parent
        while node is not None:
            chain.append(node)
            node = node.parent
        return chain

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "displayPath": self.display_path,
            "name": self.name,
            "parentId": self.parent_id,
            "isRoot": self.display_path == ROOT_DISPLAY_PATH,
        }

    def __repr__(self) -> str:
        return f"FolderNode({self.display_path!r})"


@dataclass(frozen=True, eq=False)
class MediaRecord:
    filename: str
    relative_path: str
    kind: MediaKind
    pixel_width: int
    pixel_height: int
    duration: Optional[float]
    folder: FolderNode
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def aspect_ratio(self) -> float:
        if self.pixel_height <= 0:
            return 1.0
        return self.pixel_width / self.pixel_height

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "relativePath": self.relative_path,
            "kind": self.kind,
            "pixelWidth": self.pixel_width,
            "pixelHeight": self.pixel_height,
            "duration": self.duration,
            "folder": self.folder.display_path,
        }

    def __repr__(self) -> str:
        return f"MediaRecord({self.relative_path!r}, kind={self.kind!r})"
