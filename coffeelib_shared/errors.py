"""
Exception types that cross the import pipeline boundary, plus message sanitizing
for client-facing payloads.
"""
from __future__ import annotations

import os
import re
from typing import Any

from .types import ErrorCode

_WINDOWS_PATH_RE = re.compile(r"[A-Za-z]:\\[^\s]+")
_UNIX_PATH_RE = re.compile(r"(?<![A-Za-z0-9:/?&=#%])/(?!/)[^\s#?]+")


class CoffeelibError(Exception):
    """Base class for errors raised by the catalog and import pipeline."""

    code: ErrorCode = ErrorCode.IMPORT_FAILED


class CatalogRootMissingError(CoffeelibError):
    """The catalog has no root folder (``/``) when one is required."""

    code = ErrorCode.CATALOG_ROOT_MISSING


class CatalogStoreError(CoffeelibError):
    """A catalog read or write could not be completed."""

    code = ErrorCode.DB_ERROR


class CatalogSaveError(CatalogStoreError):
    """Pending catalog inserts could not be committed; they stay pending."""


def _mask_paths(value: str) -> str:
    cleaned = _WINDOWS_PATH_RE.sub("[path]", value)
    return _UNIX_PATH_RE.sub("[path]", cleaned)


def sanitize_error_message(exc: Any, fallback: str) -> str:
    """
    Build a safe error message for clients.

    Path-looking substrings are masked so filesystem layout does not leak.
    """
    if not fallback:
        fallback = "An error occurred"
    if exc is None:
        return fallback
    raw = str(exc)
    if not raw:
        return fallback
    sanitized = _mask_paths(raw.replace(os.getcwd(), "[cwd]"))
    sanitized = " ".join(sanitized.splitlines()).strip()
    if sanitized:
        return f"{fallback}: {sanitized[:200]}"
    return fallback
