"""
Read-only catalog browsing endpoints.
"""
from aiohttp import web

from ...path_utils import normalize_display_path
from ...shared import CatalogStoreError, ErrorCode, Result
from ..core import _json_response, _require_services, safe_error_message


def register_browse_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/coffeelib/folders")
    async def get_folder(request: web.Request) -> web.Response:
        """Folder at ?path= with its direct subfolders and media records."""
        services, svc_error = _require_services(request)
        if svc_error is not None:
            return _json_response(svc_error)
        store = services["store"]
        path = normalize_display_path(request.query.get("path"))
        try:
            folder = await store.fetch_folder(path)
            if folder is None:
                return _json_response(Result.Err(ErrorCode.NOT_FOUND, f"Folder not found: {path}"))
            subfolders = await store.list_subfolders(folder)
            media = await store.list_media(folder)
        except CatalogStoreError as exc:
            return _json_response(Result.Err(ErrorCode.DB_ERROR, safe_error_message(exc, "Catalog query failed")))
        return _json_response(
            Result.Ok(
                {
                    "folder": folder.to_dict(),
                    "subfolders": [f.to_dict() for f in subfolders],
                    "media": [m.to_dict() for m in media],
                }
            )
        )

    @routes.get("/coffeelib/stats")
    async def get_stats(request: web.Request) -> web.Response:
        services, svc_error = _require_services(request)
        if svc_error is not None:
            return _json_response(svc_error)
        store = services["store"]
        try:
            data = {"folders": await store.count_folders(), "media": await store.count_media()}
        except CatalogStoreError as exc:
            return _json_response(Result.Err(ErrorCode.DB_ERROR, safe_error_message(exc, "Catalog query failed")))
        return _json_response(Result.Ok(data))

    @routes.get("/coffeelib/reference-roots")
    async def get_reference_roots(request: web.Request) -> web.Response:
        services, svc_error = _require_services(request)
        if svc_error is not None:
            return _json_response(svc_error)
        return _json_response(services["registry"].list_roots())
