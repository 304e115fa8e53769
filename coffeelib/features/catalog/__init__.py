"""
Catalog feature - folder tree and media records.
"""
from .models import FolderNode, MediaRecord
from .store import CatalogStore

__all__ = ["CatalogStore", "FolderNode", "MediaRecord"]
