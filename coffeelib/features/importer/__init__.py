"""
Importer feature - filesystem to catalog pipeline.
"""
from .fs_walker import FileSystemWalker, FsEntry
from .orchestrator import ImportOrchestrator, ImportResult
from .pending import Pending, PendingRecordBuilder
from .probe import MetadataProbe, ProbeResult
from .reconciler import FolderTreeReconciler, ensure_root_folder
from .writer import CatalogWriter

__all__ = [
    "CatalogWriter",
    "FileSystemWalker",
    "FolderTreeReconciler",
    "FsEntry",
    "ImportOrchestrator",
    "ImportResult",
    "MetadataProbe",
    "Pending",
    "PendingRecordBuilder",
    "ProbeResult",
    "ensure_root_folder",
]
