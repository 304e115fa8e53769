"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final, Literal

# File type classifications
MediaKind = Literal["image", "video"]
FileKind = Literal["image", "video", "unknown"]


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"
    NOT_FOUND = "NOT_FOUND"

    # Feature / service availability
    DEGRADED = "DEGRADED"
    TOOL_MISSING = "TOOL_MISSING"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Server / infrastructure
    DB_ERROR = "DB_ERROR"
    TIMEOUT = "TIMEOUT"
    CATALOG_ROOT_MISSING = "CATALOG_ROOT_MISSING"

    # Operation errors
    IMPORT_FAILED = "IMPORT_FAILED"
    STORE_WRITE_FAILED = "STORE_WRITE_FAILED"

    # Tool / parsing
    FFPROBE_ERROR = "FFPROBE_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


class Strategy(str, Enum):
    """Ingestion mode, chosen once per import operation."""

    COPY = "copy"            # duplicate content into managed storage
    REFERENCE = "reference"  # point at the original location

    @classmethod
    def parse(cls, value: "Strategy | str") -> "Strategy":
        if isinstance(value, Strategy):
            return value
        raw = str(value or "").strip().lower()
        for member in cls:
            if member.value == raw:
                return member
        raise ValueError(f"Unknown import strategy: {value!r}")


# Extensions are matched lowercase and without the leading dot.
IMAGE_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {"heic", "heif", "jpg", "jpeg", "png", "gif", "bmp", "tiff", "tif", "webp"}
)
VIDEO_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {"mp4", "mov", "m4v", "avi", "mkv", "webm"}
)

EXTENSIONS: Final[dict[FileKind, frozenset[str]]] = {
    "image": IMAGE_EXTENSIONS,
    "video": VIDEO_EXTENSIONS,
    "unknown": frozenset(),
}


def extension_of(filename: str) -> str:
    return os.path.splitext(filename)[1].lstrip(".").lower()


def classify_file(filename: str) -> FileKind:
    """
    Classify file by extension.

    Args:
        filename: File name or path

    Returns:
        File kind (image, video, unknown)
    """
    ext = extension_of(filename)
    if ext in VIDEO_EXTENSIONS:
        return "video"
    if ext in IMAGE_EXTENSIONS:
        return "image"
    return "unknown"
