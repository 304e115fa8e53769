"""Backend-facing alias for shared utilities."""

from __future__ import annotations

import coffeelib_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
Strategy = _root_shared.Strategy
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
classify_file = _root_shared.classify_file
extension_of = _root_shared.extension_of
sanitize_error_message = _root_shared.sanitize_error_message
FileKind = _root_shared.FileKind
MediaKind = _root_shared.MediaKind
EXTENSIONS = _root_shared.EXTENSIONS
IMAGE_EXTENSIONS = _root_shared.IMAGE_EXTENSIONS
VIDEO_EXTENSIONS = _root_shared.VIDEO_EXTENSIONS
CoffeelibError = _root_shared.CoffeelibError
CatalogRootMissingError = _root_shared.CatalogRootMissingError
CatalogStoreError = _root_shared.CatalogStoreError
CatalogSaveError = _root_shared.CatalogSaveError

__all__ = list(_root_shared.__all__)
