import logging

import pytest

from coffeelib_shared import (
    ErrorCode,
    Result,
    Strategy,
    classify_file,
    extension_of,
    get_logger,
    sanitize_error_message,
)


@pytest.mark.parametrize(
    "filename, kind",
    [
        ("a.png", "image"),
        ("A.JPG", "image"),
        ("x.heic", "image"),
        ("scan.tif", "image"),
        ("clip.mp4", "video"),
        ("clip.MOV", "video"),
        ("movie.mkv", "video"),
        ("notes.txt", "unknown"),
        ("archive.tar.gz", "unknown"),
        ("noext", "unknown"),
    ],
)
def test_classify_file(filename, kind) -> None:
    assert classify_file(filename) == kind


def test_extension_of_is_lowercase_without_dot() -> None:
    assert extension_of("Photo.JPeG") == "jpeg"
    assert extension_of("noext") == ""


def test_strategy_parse() -> None:
    assert Strategy.parse("copy") is Strategy.COPY
    assert Strategy.parse(" Reference ") is Strategy.REFERENCE
    assert Strategy.parse(Strategy.COPY) is Strategy.COPY
    with pytest.raises(ValueError):
        Strategy.parse("move")


def test_result_helpers() -> None:
    ok = Result.Ok({"a": 1}, quality="full")
    assert ok.ok and ok.code == "OK" and ok.meta == {"quality": "full"}
    assert ok.map(lambda d: d["a"]).data == 1
    err = Result.Err(ErrorCode.NOT_FOUND, "missing")
    assert not err.ok
    assert err.code == "NOT_FOUND"
    assert err.unwrap_or("fallback") == "fallback"
    with pytest.raises(ValueError):
        err.unwrap()


def test_sanitize_error_message_masks_paths() -> None:
    msg = sanitize_error_message(OSError("cannot open /home/me/secret/file.jpg"), "Copy failed")
    assert msg.startswith("Copy failed")
    assert "/home/me" not in msg
    assert sanitize_error_message(None, "Fallback") == "Fallback"


def test_get_logger_namespaces() -> None:
    log = get_logger("coffeelib.features.importer.writer")
    assert log.name == "coffeelib.features.importer.writer"
    shared = get_logger("coffeelib_shared.types")
    assert shared.name == "coffeelib.shared.types"
    assert len(log.handlers) == 1
    assert get_logger("coffeelib.features.importer.writer").handlers == log.handlers
    assert log.level == logging.INFO
