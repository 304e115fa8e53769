import os
import sys

import pytest
import pytest_asyncio

from .repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Loggers are created with propagate=False unless this is set; caplog needs it.
os.environ.setdefault("COFFEELIB_LOG_PROPAGATE", "1")


@pytest.fixture
def make_image():
    """Write a real image of the given size with Pillow and return its path."""
    from PIL import Image

    def _make(path, size=(64, 48), fmt=None):
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, (200, 120, 40)).save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def library(tmp_path):
    from coffeelib.library import LibraryLocation

    lib = LibraryLocation(tmp_path / "library")
    lib.ensure_exists()
    return lib


@pytest_asyncio.fixture
async def db(tmp_path):
    from coffeelib.adapters.db import Sqlite, init_schema

    database = Sqlite(tmp_path / "catalog.sqlite")
    res = await init_schema(database)
    assert res.ok, res.error
    try:
        yield database
    finally:
        await database.aclose()


@pytest_asyncio.fixture
async def store(db):
    from coffeelib.features.catalog import CatalogStore

    return CatalogStore(db)


@pytest_asyncio.fixture
async def services(tmp_path):
    from coffeelib.deps import build_services, dispose_services
    from coffeelib.library import LibraryLocation

    svc_res = await build_services(LibraryLocation(tmp_path / "services_library"))
    assert svc_res.ok, svc_res.error
    svc = svc_res.data
    try:
        yield svc
    finally:
        await dispose_services(svc)
