"""
Logging utilities with consistent formatting and level indicators.
"""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Final

LEVEL_MARKERS: Final[dict[str, str]] = {
    "DEBUG": "..",
    "INFO": "--",
    "WARNING": "!!",
    "ERROR": "XX",
    "CRITICAL": "##",
    "SUCCESS": "OK",
}

PREFIX: Final[str] = "☕ coffeelib"

_PROPAGATE_VALUES = ("1", "true", "yes", "on")


class MarkerFormatter(logging.Formatter):
    """Formatter that prefixes every line with the project tag and a level marker."""

    def format(self, record: logging.LogRecord) -> str:
        marker = LEVEL_MARKERS.get(record.levelname, "--")
        log_format = f"{PREFIX} [{marker}] %(name)s: %(message)s"
        formatter = logging.Formatter(log_format)
        return formatter.format(record)


def _propagate_enabled() -> bool:
    raw = os.environ.get("COFFEELIB_LOG_PROPAGATE", "")
    return str(raw).strip().lower() in _PROPAGATE_VALUES


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Get a logger under the ``coffeelib.`` namespace.

    Args:
        name: Logger name (usually __name__)
        level: Optional logging level

    Returns:
        Configured logger instance
    """
    if name.startswith("__main__"):
        name = "main"
    elif name.startswith("coffeelib_shared."):
        name = "shared." + name.split(".", 1)[1]
    elif name.startswith("coffeelib."):
        name = name.split(".", 1)[1]

    logger = logging.getLogger(f"coffeelib.{name}")

    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(MarkerFormatter())
        logger.addHandler(handler)

    # Tests turn propagation on so caplog can see records.
    logger.propagate = _propagate_enabled()

    return logger


SUCCESS_LEVEL: Final[int] = 25  # Between INFO (20) and WARNING (30)
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


def log_success(logger: logging.Logger, message: str) -> None:
    """Log a message at the SUCCESS level."""
    logger.log(SUCCESS_LEVEL, message)


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Emit a structured JSON log entry with contextual fields."""
    payload = {
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "context": context,
    }
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
