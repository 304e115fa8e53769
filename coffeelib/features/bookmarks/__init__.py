"""
Bookmarks feature - roots imported by reference.
"""
from .registry import ReferenceRootRegistry

__all__ = ["ReferenceRootRegistry"]
