"""
Pure helpers over catalog display paths and filesystem-relative paths.

A display path is the catalog's identity key for a folder: ``/``, ``/Top``,
``/Top/Sub``. It is independent of where the content lives on disk.
"""
from __future__ import annotations

import os
from pathlib import Path

ROOT_DISPLAY_PATH = "/"


def normalize_display_path(raw: str | None) -> str:
    """
    Canonical form of a display path.

    Whitespace is trimmed and empty components are dropped, so ``a//b/`` and
    ``/a/b`` are the same key. Empty input maps to ``/``.
    """
    components = [c for c in str(raw or "").strip().split("/") if c]
    return "/" + "/".join(components)


def display_path_components(display_path: str) -> list[str]:
    return [c for c in normalize_display_path(display_path).split("/") if c]


def parent_display_path(display_path: str) -> str:
    """``/`` for a single component, otherwise the path minus its last component."""
    comps = display_path_components(display_path)
    if len(comps) <= 1:
        return ROOT_DISPLAY_PATH
    return "/" + "/".join(comps[:-1])


def join_display_path(parent: str, name: str) -> str:
    parent = normalize_display_path(parent)
    if parent == ROOT_DISPLAY_PATH:
        return "/" + name
    return f"{parent}/{name}"


def relative_of(file: str | os.PathLike[str], root: str | os.PathLike[str]) -> str:
    """
    The portion of ``file`` after ``root`` with one separator boundary.

    Falls back to the base name when ``file`` is not under ``root``. The result
    always uses ``/`` separators.
    """
    file_s = os.fspath(file)
    root_s = os.fspath(root)
    base = root_s if root_s.endswith(os.sep) else root_s + os.sep
    if file_s.startswith(base):
        rel = file_s[len(base):]
        return rel.replace(os.sep, "/")
    return Path(file_s).name


def is_hidden_name(name: str) -> bool:
    return name.startswith(".")
