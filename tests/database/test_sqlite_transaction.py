import pytest


@pytest.mark.asyncio
async def test_transaction_commits(db) -> None:
    async with db.atransaction() as tx:
        assert tx.ok
        res = await db.aexecute("INSERT INTO metadata (key, value) VALUES ('k', 'v')")
        assert res.ok and res.data == 1
    assert tx.ok
    rows = await db.aquery("SELECT value FROM metadata WHERE key = 'k'")
    assert rows.data == [{"value": "v"}]


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_exception(db) -> None:
    with pytest.raises(RuntimeError):
        async with db.atransaction():
            await db.aexecute("INSERT INTO metadata (key, value) VALUES ('gone', 'v')")
            raise RuntimeError("boom")
    rows = await db.aquery("SELECT value FROM metadata WHERE key = 'gone'")
    assert rows.ok and rows.data == []


@pytest.mark.asyncio
async def test_errors_are_results_not_exceptions(db) -> None:
    res = await db.aquery("SELECT * FROM no_such_table")
    assert not res.ok
    assert res.code == "DB_ERROR"
    dup = await db.aexecute("INSERT INTO metadata (key, value) VALUES ('schema_version', 'x')")
    assert not dup.ok


@pytest.mark.asyncio
async def test_write_outside_transaction_is_autocommitted(db) -> None:
    assert (await db.aexecute("INSERT INTO metadata (key, value) VALUES ('auto', '1')")).ok
    rows = await db.aquery("SELECT COUNT(*) AS n FROM metadata WHERE key = 'auto'")
    assert rows.data[0]["n"] == 1


@pytest.mark.asyncio
async def test_executemany_inside_transaction(db) -> None:
    rows = [("a", "1"), ("b", "2"), ("c", "3")]
    async with db.atransaction() as tx:
        res = await db.aexecutemany("INSERT INTO metadata (key, value) VALUES (?, ?)", rows)
        assert res.ok and res.data == 3
    assert tx.ok
    count = await db.aquery("SELECT COUNT(*) AS n FROM metadata WHERE key IN ('a', 'b', 'c')")
    assert count.data[0]["n"] == 3

    assert (await db.aexecutemany("INSERT INTO metadata (key, value) VALUES (?, ?)", [])).data == 0
    dup = await db.aexecutemany("INSERT INTO metadata (key, value) VALUES (?, ?)", [("a", "x")])
    assert not dup.ok and dup.code == "DB_ERROR"
