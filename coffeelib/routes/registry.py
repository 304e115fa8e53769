"""
Route registration.
Builds the aiohttp application and wires the service container into it.
"""
from __future__ import annotations

from aiohttp import web

from ..deps import dispose_services
from ..shared import get_logger
from .core import APP_KEY_SERVICES
from .handlers import register_browse_routes, register_import_routes

logger = get_logger(__name__)

API_PREFIX = "/coffeelib/"


def register_all_routes() -> web.RouteTableDef:
    routes = web.RouteTableDef()
    register_import_routes(routes)
    register_browse_routes(routes)
    return routes


async def _on_cleanup(app: web.Application) -> None:
    await dispose_services(app.get(APP_KEY_SERVICES))


def create_app(services: dict) -> web.Application:
    """aiohttp application serving the catalog API for one services container."""
    app = web.Application()
    app[APP_KEY_SERVICES] = services
    app.add_routes(register_all_routes())
    app.on_cleanup.append(_on_cleanup)
    logger.debug("Registered routes under %s", API_PREFIX)
    return app
