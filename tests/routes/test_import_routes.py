import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from coffeelib.features.importer import ImportResult
from coffeelib.routes import create_app
from coffeelib.routes.core import APP_KEY_SERVICES
from coffeelib.routes.handlers import register_import_routes
from coffeelib.shared import CatalogRootMissingError, CatalogSaveError, CatalogStoreError


class _FakeImporter:
    def __init__(self, exc=None):
        self.exc = exc
        self.calls = []

    async def import_roots(self, roots, strategy):
        self.calls.append((roots, strategy))
        if self.exc is not None:
            raise self.exc
        return ImportResult(folders_indexed=3, items_indexed=7)


async def _client_for(services) -> TestClient:
    routes = web.RouteTableDef()
    register_import_routes(routes)
    app = web.Application()
    app[APP_KEY_SERVICES] = services
    app.add_routes(routes)
    client = TestClient(TestServer(app))
    await client.start_server()
    return client


@pytest.mark.asyncio
async def test_import_returns_camel_case_counts() -> None:
    importer = _FakeImporter()
    client = await _client_for({"importer": importer})
    try:
        resp = await client.post("/coffeelib/import", json={"roots": ["/photos"], "strategy": "Reference"})
        payload = await resp.json()
        assert resp.status == 200
        assert payload["ok"] is True
        assert payload["data"] == {"foldersIndexed": 3, "itemsIndexed": 7}
        assert payload["meta"] == {"strategy": "reference"}
        assert importer.calls[0][0] == ["/photos"]
    finally:
        await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, code",
    [
        ({"roots": []}, "INVALID_INPUT"),
        ({"roots": "not-a-list"}, "INVALID_INPUT"),
        ({"roots": [""]}, "INVALID_INPUT"),
        ({"roots": ["/a"], "strategy": "move"}, "INVALID_INPUT"),
    ],
)
async def test_import_validates_body(body, code) -> None:
    client = await _client_for({"importer": _FakeImporter()})
    try:
        payload = await (await client.post("/coffeelib/import", json=body)).json()
        assert payload["ok"] is False
        assert payload["code"] == code
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_import_rejects_invalid_json() -> None:
    client = await _client_for({"importer": _FakeImporter()})
    try:
        resp = await client.post("/coffeelib/import", data=b"{oops", headers={"Content-Type": "application/json"})
        payload = await resp.json()
        assert payload["code"] == "INVALID_JSON"
    finally:
        await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc, code",
    [
        (CatalogRootMissingError("root gone"), "CATALOG_ROOT_MISSING"),
        (CatalogSaveError("disk full"), "DB_ERROR"),
        (CatalogStoreError("query failed"), "DB_ERROR"),
    ],
)
async def test_fatal_errors_report_zero_counts(exc, code) -> None:
    client = await _client_for({"importer": _FakeImporter(exc)})
    try:
        payload = await (await client.post("/coffeelib/import", json={"roots": ["/a"]})).json()
        assert payload["ok"] is False
        assert payload["code"] == code
        assert payload["data"] == {"foldersIndexed": 0, "itemsIndexed": 0}
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_missing_services_is_reported() -> None:
    client = await _client_for({})
    try:
        payload = await (await client.post("/coffeelib/import", json={"roots": ["/a"]})).json()
        assert payload["code"] == "SERVICE_UNAVAILABLE"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_full_app_import_and_browse(services, tmp_path, make_image) -> None:
    make_image(tmp_path / "Trip" / "day1" / "beach.png", size=(20, 10))
    make_image(tmp_path / "Trip" / "cover.png")
    client = TestClient(TestServer(create_app(services)))
    await client.start_server()
    try:
        resp = await client.post("/coffeelib/import", json={"roots": [str(tmp_path / "Trip")], "strategy": "copy"})
        payload = await resp.json()
        assert payload["ok"] is True
        assert payload["data"] == {"foldersIndexed": 2, "itemsIndexed": 2}

        browse = await (await client.get("/coffeelib/folders", params={"path": "/Trip"})).json()
        assert browse["ok"] is True
        assert browse["data"]["folder"]["displayPath"] == "/Trip"
        assert [f["name"] for f in browse["data"]["subfolders"]] == ["day1"]
        assert [m["relativePath"] for m in browse["data"]["media"]] == ["Trip/cover.png"]

        day1 = await (await client.get("/coffeelib/folders?path=Trip/day1/")).json()
        media = day1["data"]["media"][0]
        assert (media["pixelWidth"], media["pixelHeight"], media["kind"]) == (20, 10, "image")

        root = await (await client.get("/coffeelib/folders")).json()
        assert root["data"]["folder"]["isRoot"] is True
        assert root["data"]["folder"]["name"] == "Library"

        missing = await (await client.get("/coffeelib/folders?path=/Nope")).json()
        assert missing["code"] == "NOT_FOUND"

        stats = await (await client.get("/coffeelib/stats")).json()
        assert stats["data"] == {"folders": 3, "media": 2}

        refs = await (await client.get("/coffeelib/reference-roots")).json()
        assert refs["ok"] is True and refs["data"] == []
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_store_query_failure_is_not_a_server_error(services, tmp_path, make_image, monkeypatch) -> None:
    make_image(tmp_path / "Trip" / "a.png")

    async def _broken_fetch(display_path):
        raise CatalogStoreError("Operational error: database disk image is malformed")

    monkeypatch.setattr(services["store"], "fetch_folder", _broken_fetch)
    client = TestClient(TestServer(create_app(services)))
    await client.start_server()
    try:
        resp = await client.post("/coffeelib/import", json={"roots": [str(tmp_path / "Trip")]})
        assert resp.status == 200
        payload = await resp.json()
        assert payload["ok"] is False
        assert payload["code"] == "DB_ERROR"
        assert payload["data"] == {"foldersIndexed": 0, "itemsIndexed": 0}
    finally:
        await client.close()
