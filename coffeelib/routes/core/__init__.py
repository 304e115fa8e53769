"""Core route helpers: JSON responses, request parsing, service lookup."""
from .request_json import _read_json
from .response import _json_response, safe_error_message
from .services import APP_KEY_SERVICES, _require_services

__all__ = [
    "APP_KEY_SERVICES",
    "_json_response",
    "_read_json",
    "_require_services",
    "safe_error_message",
]
