from __future__ import annotations

from pathlib import Path

import pytest

from repo_to_text.config import BINARY_PLACEHOLDER, RecordKind
from repo_to_text.exceptions import ReadError
from repo_to_text.file_manipulation import (
    is_binary,
    make_record,
    read_file_contents,
    read_text_lines,
    relpath,
)


@pytest.mark.unit
def test_relpath_uses_root_relative_path(tmp_path: Path) -> None:
    path = tmp_path / "src" / "app.py"

    assert relpath(path, tmp_path) == str(Path("src") / "app.py")


@pytest.mark.unit
def test_relpath_outside_root_returns_original(tmp_path: Path) -> None:
    other = Path("/elsewhere/file.txt")

    assert relpath(other, tmp_path) == str(other)


@pytest.mark.unit
def test_null_byte_in_probe_is_binary(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(b"\x00rest of the data")

    assert is_binary(path)
    assert read_file_contents(path) == (BINARY_PLACEHOLDER, RecordKind.BINARY)


@pytest.mark.unit
def test_null_byte_at_end_of_probe_is_binary(tmp_path: Path) -> None:
    path = tmp_path / "late.bin"
    path.write_bytes(b"a" * 511 + b"\x00" + b"tail")

    assert is_binary(path)


@pytest.mark.unit
def test_null_byte_after_probe_is_not_binary(tmp_path: Path) -> None:
    path = tmp_path / "late.txt"
    path.write_bytes(b"a" * 512 + b"\x00\n")

    assert not is_binary(path)
    content, kind = read_file_contents(path)
    assert kind is RecordKind.TEXT
    assert content == "a" * 512 + "\x00\n"


@pytest.mark.unit
def test_line_endings_are_normalized(tmp_path: Path) -> None:
    path = tmp_path / "crlf.txt"
    path.write_bytes(b"one\r\ntwo\nthree")

    assert read_file_contents(path) == ("one\ntwo\nthree\n", RecordKind.TEXT)


@pytest.mark.unit
def test_only_one_carriage_return_is_dropped(tmp_path: Path) -> None:
    path = tmp_path / "cr.txt"
    path.write_bytes(b"a\r\r\nb\rc\n")

    assert read_text_lines(path) == ["a\r", "b\rc"]


@pytest.mark.unit
def test_empty_file_has_empty_content(tmp_path: Path) -> None:
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")

    assert read_file_contents(path) == ("", RecordKind.TEXT)


@pytest.mark.unit
def test_undecodable_line_raises_read_error(tmp_path: Path) -> None:
    path = tmp_path / "latin1.txt"
    path.write_bytes(b"ok\ncaf\xe9\n")

    with pytest.raises(ReadError) as exc_info:
        read_file_contents(path)

    assert exc_info.value.path == path
    assert "line 2" in str(exc_info.value)


@pytest.mark.unit
def test_missing_file_raises_read_error(tmp_path: Path) -> None:
    with pytest.raises(ReadError):
        read_file_contents(tmp_path / "gone.txt")


@pytest.mark.unit
def test_make_record_turns_read_error_into_placeholder(tmp_path: Path) -> None:
    path = tmp_path / "bad.txt"
    path.write_bytes(b"\xff\xfe\xfd\n")

    rec = make_record(path, tmp_path)

    assert rec.rel == "bad.txt"
    assert rec.kind is RecordKind.ERROR
    assert rec.content.startswith("[Error reading file: ")
    assert rec.content.endswith("]")


@pytest.mark.unit
def test_make_record_keeps_text(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("hello\n", encoding="utf-8")

    rec = make_record(path, tmp_path)

    assert rec.rel == "a.txt"
    assert rec.content == "hello\n"
    assert rec.kind is RecordKind.TEXT
