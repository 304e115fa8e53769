"""
Response utilities for route handlers.
"""
import math

from aiohttp import web

from ...config import DEBUG
from ...shared import Result, sanitize_error_message


def safe_error_message(exc: Exception, generic_message: str) -> str:
    """
    Return a safe message for clients.

    Paths are masked; with ``COFFEELIB_DEBUG`` enabled the raw exception text
    is kept.
    """
    if DEBUG:
        return f"{generic_message}: {exc}"
    return sanitize_error_message(exc, generic_message)


def _json_response(result: Result, status: int | None = None) -> web.Response:
    """
    Convert a Result to a JSON response.

    Business and validation errors are returned with HTTP 200 and
    ``{"ok": false, ...}``; an explicit status is only used for server faults.
    """
    payload = _sanitize_json_payload(
        {
            "ok": result.ok,
            "data": result.data,
            "error": result.error,
            "code": result.code,
            "meta": result.meta,
        }
    )
    return web.json_response(payload, status=200 if status is None else status)


def _sanitize_json_payload(value):
    """
    Normalize payload values so they are always valid strict JSON.
    - Converts NaN/Infinity floats to None.
    - Recurses through dict/list/tuple containers.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _sanitize_json_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_payload(v) for v in value]
    return value
