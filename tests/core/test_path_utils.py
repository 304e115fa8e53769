import os

import pytest

from coffeelib.path_utils import (
    ROOT_DISPLAY_PATH,
    display_path_components,
    is_hidden_name,
    join_display_path,
    normalize_display_path,
    parent_display_path,
    relative_of,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  foo/bar/ ", "/foo/bar"),
        ("", "/"),
        ("/", "/"),
        (None, "/"),
        ("///a//", "/a"),
        ("/A/B", "/A/B"),
        ("   ", "/"),
        ("/A//B", "/A/B"),
        ("a///b//c", "/a/b/c"),
    ],
)
def test_normalize_display_path(raw, expected) -> None:
    assert normalize_display_path(raw) == expected


def test_normalize_is_idempotent() -> None:
    for raw in ("  foo/bar/ ", "", "/x", "a/b/c/"):
        once = normalize_display_path(raw)
        assert normalize_display_path(once) == once


def test_parent_display_path() -> None:
    assert parent_display_path("/A") == ROOT_DISPLAY_PATH
    assert parent_display_path("/A/B") == "/A"
    assert parent_display_path("/A/B/C/") == "/A/B"
    assert parent_display_path("/") == ROOT_DISPLAY_PATH


def test_join_does_not_double_root_slash() -> None:
    assert join_display_path("/", "A") == "/A"
    assert join_display_path("/A", "B") == "/A/B"
    assert join_display_path("A/", "B") == "/A/B"


def test_display_path_components() -> None:
    assert display_path_components("/") == []
    assert display_path_components("/A/B") == ["A", "B"]


def test_relative_of_under_root(tmp_path) -> None:
    root = tmp_path / "Root"
    file = root / "sub" / "img.jpg"
    assert relative_of(file, root) == "sub/img.jpg"
    assert relative_of(str(file), str(root) + os.sep) == "sub/img.jpg"


def test_relative_of_requires_separator_boundary(tmp_path) -> None:
    # "/x/Root2/a.jpg" is not under "/x/Root" even though the strings share a prefix.
    root = tmp_path / "Root"
    other = tmp_path / "Root2" / "a.jpg"
    assert relative_of(other, root) == "a.jpg"


def test_is_hidden_name() -> None:
    assert is_hidden_name(".DS_Store")
    assert is_hidden_name(".cache")
    assert not is_hidden_name("photo.jpg")
