"""Shared utilities for coffeelib."""
from .errors import (
    CatalogRootMissingError,
    CatalogSaveError,
    CatalogStoreError,
    CoffeelibError,
    sanitize_error_message,
)
from .log import get_logger, log_structured, log_success
from .result import Result
from .types import (
    EXTENSIONS,
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    ErrorCode,
    FileKind,
    MediaKind,
    Strategy,
    classify_file,
    extension_of,
)

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "ErrorCode",
    "FileKind",
    "MediaKind",
    "Strategy",
    "EXTENSIONS",
    "IMAGE_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "classify_file",
    "extension_of",
    "CoffeelibError",
    "CatalogRootMissingError",
    "CatalogStoreError",
    "CatalogSaveError",
    "sanitize_error_message",
]
