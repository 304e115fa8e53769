"""
Import endpoint.
"""
from aiohttp import web

from ...features.importer import ImportResult
from ...shared import (
    CatalogRootMissingError,
    CatalogSaveError,
    CoffeelibError,
    ErrorCode,
    Result,
    Strategy,
    get_logger,
)
from ..core import _json_response, _read_json, _require_services, safe_error_message

logger = get_logger(__name__)


def _parse_roots(raw) -> Result[list[str]]:
    if not isinstance(raw, list) or not raw:
        return Result.Err(ErrorCode.INVALID_INPUT, "'roots' must be a non-empty list of paths")
    roots: list[str] = []
    for item in raw:
        value = str(item or "").strip() if isinstance(item, str) else ""
        if not value or "\x00" in value:
            return Result.Err(ErrorCode.INVALID_INPUT, "Each root must be a non-empty path string")
        roots.append(value)
    return Result.Ok(roots)


def _failed(code: ErrorCode, message: str) -> Result:
    res = Result.Err(code, message)
    res.data = ImportResult().to_dict()
    return res


def register_import_routes(routes: web.RouteTableDef) -> None:
    """
    POST /coffeelib/import  {"roots": [...], "strategy": "copy" | "reference"}
    """

    @routes.post("/coffeelib/import")
    async def import_roots(request: web.Request) -> web.Response:
        services, svc_error = _require_services(request)
        if svc_error is not None:
            return _json_response(svc_error)

        body = await _read_json(request)
        if not body.ok:
            return _json_response(body)
        payload = body.data or {}

        roots = _parse_roots(payload.get("roots"))
        if not roots.ok:
            return _json_response(roots)
        try:
            strategy = Strategy.parse(payload.get("strategy") or Strategy.COPY.value)
        except ValueError as exc:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, str(exc)))

        try:
            result = await services["importer"].import_roots(roots.data, strategy)
        except CatalogRootMissingError as exc:
            logger.error("Import aborted: %s", exc)
            return _json_response(_failed(ErrorCode.CATALOG_ROOT_MISSING, safe_error_message(exc, "Catalog root missing")))
        except CatalogSaveError as exc:
            logger.error("Import could not be saved: %s", exc)
            return _json_response(_failed(ErrorCode.DB_ERROR, safe_error_message(exc, "Failed to save catalog")))
        except CoffeelibError as exc:
            logger.error("Import failed: %s", exc)
            return _json_response(_failed(exc.code, safe_error_message(exc, "Import failed")))

        return _json_response(Result.Ok(result.to_dict(), strategy=strategy.value))
