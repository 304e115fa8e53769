"""Route handlers."""
from .browse import register_browse_routes
from .import_routes import register_import_routes

__all__ = ["register_browse_routes", "register_import_routes"]
