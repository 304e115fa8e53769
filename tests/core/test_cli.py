import json

from coffeelib.__main__ import main
from coffeelib.features.catalog import CatalogStore
from coffeelib.shared import CatalogStoreError


def test_cli_import_prints_counts(tmp_path, make_image, capsys) -> None:
    make_image(tmp_path / "Album" / "a.png")
    make_image(tmp_path / "Album" / "b.png")
    lib = tmp_path / "lib"

    code = main(["import", str(tmp_path / "Album"), "--library", str(lib)])

    assert code == 0
    out = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert out == {"foldersIndexed": 1, "itemsIndexed": 2}
    assert (lib / "media" / "Album" / "a.png").is_file()

    code = main(["import", str(tmp_path / "Album"), "--library", str(lib), "--strategy", "COPY"])
    assert code == 0
    assert json.loads(capsys.readouterr().out.strip().splitlines()[-1]) == {"foldersIndexed": 0, "itemsIndexed": 0}


def test_cli_reference_strategy_leaves_library_media_empty(tmp_path, make_image, capsys) -> None:
    make_image(tmp_path / "Album" / "a.png")
    lib = tmp_path / "lib"

    assert main(["import", str(tmp_path / "Album"), "--library", str(lib), "--strategy", "reference"]) == 0
    assert list((lib / "media").iterdir()) == []
    assert (lib / "reference_roots.json").is_file()


def test_cli_store_failure_exits_with_error(tmp_path, make_image, monkeypatch, capsys) -> None:
    make_image(tmp_path / "Album" / "a.png")

    async def _broken_fetch(self, display_path):
        raise CatalogStoreError("query failed")

    monkeypatch.setattr(CatalogStore, "fetch_folder", _broken_fetch)
    code = main(["import", str(tmp_path / "Album"), "--library", str(tmp_path / "lib")])

    assert code == 4
    assert "query failed" in capsys.readouterr().err


def test_cli_resolves_relative_roots(tmp_path, make_image, monkeypatch, capsys) -> None:
    make_image(tmp_path / "Album" / "sub1" / "b.png")
    make_image(tmp_path / "Album" / "sub2" / "b.png")
    lib = tmp_path / "lib"
    monkeypatch.chdir(tmp_path / "Album")

    assert main(["import", ".", "--library", str(lib)]) == 0

    assert json.loads(capsys.readouterr().out.strip().splitlines()[-1]) == {"foldersIndexed": 3, "itemsIndexed": 2}
    assert (lib / "media" / "Album" / "sub1" / "b.png").is_file()
    assert (lib / "media" / "Album" / "sub2" / "b.png").is_file()
