import pytest

from coffeelib.features.importer import FolderTreeReconciler, ensure_root_folder
from coffeelib.shared import CatalogRootMissingError


async def _reconciler(store) -> FolderTreeReconciler:
    await ensure_root_folder(store)
    await store.save()
    return await FolderTreeReconciler.create(store)


@pytest.mark.asyncio
async def test_create_without_root_raises(store) -> None:
    with pytest.raises(CatalogRootMissingError):
        await FolderTreeReconciler.create(store)


@pytest.mark.asyncio
async def test_ensure_root_folder_is_idempotent(store) -> None:
    root, created = await ensure_root_folder(store)
    assert created and root.name == "Library" and root.parent is None
    await store.save()
    again, created_again = await ensure_root_folder(store)
    assert again is root and not created_again


@pytest.mark.asyncio
async def test_ensure_is_idempotent(store) -> None:
    rec = await _reconciler(store)
    first = await rec.ensure("/A/B")
    count_after_first = await store.count_folders()
    second = await rec.ensure("/A/B")
    assert first is second
    assert await store.count_folders() == count_after_first == 3
    assert rec.created_count == 2


@pytest.mark.asyncio
async def test_ensure_creates_ancestors_with_correct_paths(store) -> None:
    rec = await _reconciler(store)
    leaf = await rec.ensure("  A/B/C/ ")
    assert leaf.display_path == "/A/B/C"
    chain = [leaf] + leaf.ancestors()
    assert [n.display_path for n in chain] == ["/A/B/C", "/A/B", "/A", "/"]
    for node in chain[:-1]:
        assert node.display_path.rsplit("/", 1)[-1] == node.name


@pytest.mark.asyncio
async def test_ensure_root_returns_cached_root(store) -> None:
    rec = await _reconciler(store)
    assert await rec.ensure("/") is rec.root
    assert await rec.ensure("") is rec.root
    assert rec.created_count == 0


@pytest.mark.asyncio
async def test_fresh_reconciler_reuses_saved_folders(store) -> None:
    rec = await _reconciler(store)
    await rec.ensure("/A/B")
    await store.save()

    again = await FolderTreeReconciler.create(store)
    node = await again.ensure("/A/B/C")
    assert again.created_count == 1
    assert node.parent.display_path == "/A/B"


@pytest.mark.asyncio
async def test_deep_paths_do_not_recurse(store) -> None:
    rec = await _reconciler(store)
    deep = "/" + "/".join(f"d{i}" for i in range(1200))
    node = await rec.ensure(deep)
    assert node.display_path == deep
    assert rec.created_count == 1200


@pytest.mark.asyncio
async def test_ensure_many_counts_created_folders(store) -> None:
    rec = await _reconciler(store)
    created = await rec.ensure_many(["/Top/sub/deeper", "/Top", "/Top/sub", "/Top/other"])
    assert created == 4
    assert created == rec.created_count


@pytest.mark.asyncio
async def test_doubled_separators_resolve_to_the_persisted_folder(store) -> None:
    rec = await _reconciler(store)
    b = await rec.ensure("/A/B")
    await store.save()

    fresh = await FolderTreeReconciler.create(store)
    assert await fresh.ensure("/A//B") is b
    assert await fresh.ensure("A//B/") is b
    assert fresh.created_count == 0
    assert not store.has_changes
