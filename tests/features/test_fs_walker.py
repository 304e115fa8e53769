from coffeelib.features.importer import FileSystemWalker


def _tree(root):
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / ".hidden_dir").mkdir()
    (root / "a.jpg").write_bytes(b"x")
    (root / "sub" / "b.png").write_bytes(b"x")
    (root / "sub" / "deeper" / "c.mp4").write_bytes(b"x")
    (root / ".DS_Store").write_bytes(b"x")
    (root / ".hidden_dir" / "secret.jpg").write_bytes(b"x")
    (root / "sub" / ".thumb.jpg").write_bytes(b"x")


def test_enumerate_lists_files_and_dirs(tmp_path) -> None:
    root = tmp_path / "Root"
    _tree(root)

    entries = FileSystemWalker().enumerate(root)
    rel = {(e.path.relative_to(root).as_posix(), e.is_dir) for e in entries}

    assert rel == {
        ("a.jpg", False),
        ("sub", True),
        ("sub/b.png", False),
        ("sub/deeper", True),
        ("sub/deeper/c.mp4", False),
    }


def test_enumerate_never_returns_hidden_entries(tmp_path) -> None:
    root = tmp_path / "Root"
    _tree(root)
    for entry in FileSystemWalker().enumerate(root):
        assert not any(part.startswith(".") for part in entry.path.relative_to(root).parts)


def test_enumerate_missing_directory_is_empty(tmp_path) -> None:
    assert FileSystemWalker().enumerate(tmp_path / "nope") == []


def test_enumerate_is_sorted(tmp_path) -> None:
    root = tmp_path / "Root"
    _tree(root)
    paths = [str(e.path) for e in FileSystemWalker().enumerate(root)]
    assert paths == sorted(paths)


def test_symlinked_directories_are_skipped(tmp_path) -> None:
    target = tmp_path / "elsewhere"
    target.mkdir()
    (target / "far.png").write_bytes(b"x")
    root = tmp_path / "Root"
    root.mkdir()
    (root / "real.png").write_bytes(b"x")
    (root / "linked_dir").symlink_to(target, target_is_directory=True)
    (root / "linked.png").symlink_to(target / "far.png")

    rel = {(e.path.relative_to(root).as_posix(), e.is_dir) for e in FileSystemWalker().enumerate(root)}

    assert rel == {("real.png", False), ("linked.png", False)}
