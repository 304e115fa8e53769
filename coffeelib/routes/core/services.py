"""
Service lookup for handlers.
"""
from typing import Any

from aiohttp import web

from ...shared import ErrorCode, Result

APP_KEY_SERVICES: web.AppKey[dict] = web.AppKey("coffeelib_services", dict)


def _require_services(request: web.Request) -> tuple[dict[str, Any] | None, Result | None]:
    """Return (services, None) or (None, error Result) when services are not wired."""
    services = request.app.get(APP_KEY_SERVICES)
    if not services:
        return None, Result.Err(ErrorCode.SERVICE_UNAVAILABLE, "Services are not initialized")
    return services, None
