from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from repo_to_text.config import (
    BINARY_PLACEHOLDER,
    BINARY_PROBE_SIZE,
    READ_ERROR_PLACEHOLDER,
    VCS_METADATA_DIRS,
    FileRecord,
    RecordKind,
)
from repo_to_text.exceptions import PathError, ReadError
from repo_to_text.ignore_patterns import is_ignored
from repo_to_text.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from repo_to_text.config import IgnorePattern


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with host separators.
            If path is not under root, returns the original path as a string.
            Filename bytes that are not valid UTF-8 are rendered as `\\xNN` escapes.
    """
    try:
        rel = str(path.relative_to(root))
    except ValueError:
        rel = str(path)
    return os.fsencode(rel).decode("utf-8", errors="backslashreplace")


def is_binary(path: Path, nbytes: int = BINARY_PROBE_SIZE) -> bool:
    """Check whether the first `nbytes` of a file contain a null byte.

    Args:
        path (Path): the file to probe
        nbytes (int, optional): probe size. Defaults to 512.

    Raises:
        ReadError: if the file cannot be opened or read

    Returns:
        bool: True if the probe contains a null byte
    """
    try:
        with path.open("rb") as f:
            probe = f.read(nbytes)
    except OSError as e:
        raise ReadError(path=path, reason=e.strerror or str(e)) from e
    return b"\x00" in probe


def read_text_lines(path: Path) -> list[str]:
    """Read a file line by line, normalizing line endings.

    Lines are split on `\\n` only; one trailing `\\r` is dropped from each line.

    Args:
        path (Path): the file to read

    Raises:
        ReadError: if the file cannot be read or a line is not valid UTF-8

    Returns:
        list[str]: the decoded lines, without terminators
    """
    lines: list[str] = []
    try:
        with path.open("rb") as f:
            for lineno, raw in enumerate(f, start=1):
                line = raw.removesuffix(b"\n").removesuffix(b"\r")
                try:
                    lines.append(line.decode("utf-8"))
                except UnicodeDecodeError as e:
                    raise ReadError(path=path, reason=f"line {lineno}: {e.reason}") from e
    except OSError as e:
        raise ReadError(path=path, reason=e.strerror or str(e)) from e
    return lines


def read_file_contents(path: Path) -> tuple[str, RecordKind]:
    """Return the report content of a file.

    Binary files (null byte within the first 512 bytes) are replaced by the
    binary placeholder without being read further. Text files are re-read from
    the start and rebuilt with exactly one `\\n` after every line.

    Args:
        path (Path): the file to read

    Raises:
        ReadError: if the file cannot be opened or decoded

    Returns:
        tuple[str, RecordKind]: the content and whether it is text or the binary placeholder
    """
    if is_binary(path):
        return BINARY_PLACEHOLDER, RecordKind.BINARY
    return "".join(f"{line}\n" for line in read_text_lines(path)), RecordKind.TEXT


def make_record(path: Path, root: Path) -> FileRecord:
    """Build the FileRecord of one file, turning read failures into a placeholder.

    Args:
        path (Path): the file
        root (Path): the repository root

    Returns:
        FileRecord: the record for the report
    """
    rel = relpath(path, root)
    try:
        content, kind = read_file_contents(path)
    except ReadError as e:
        logger.warning("Error reading %s: %s", rel, e)
        return FileRecord(
            rel=rel,
            content=READ_ERROR_PLACEHOLDER.format(reason=e),
            kind=RecordKind.ERROR,
        )
    return FileRecord(rel=rel, content=content, kind=kind)


def _scan_sorted(directory: Path) -> list[os.DirEntry[str]]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def _walk_directory(
    directory: Path,
    root: Path,
    patterns: Sequence[IgnorePattern],
    excluded: frozenset[Path],
    records: list[FileRecord],
) -> None:
    try:
        entries = _scan_sorted(directory)
    except OSError as e:
        if directory == root:
            raise PathError(path=root, reason=f"cannot be listed: {e.strerror or e}") from e
        logger.warning("Skipping unreadable directory %s: %s", relpath(directory, root), e)
        return

    for entry in entries:
        path = Path(entry.path)
        rel = relpath(path, root)
        if entry.is_dir(follow_symlinks=False):
            if entry.name in VCS_METADATA_DIRS or is_ignored(rel, patterns, is_dir=True):
                continue
            _walk_directory(path, root, patterns, excluded, records)
            continue
        if not entry.is_file():
            logger.debug("Skipping non-regular entry %s", rel)
            continue
        if is_ignored(rel, patterns) or (excluded and path.resolve() in excluded):
            continue
        records.append(make_record(path, root))


def walk_tree(
    root: Path,
    patterns: Sequence[IgnorePattern] = (),
    exclude: Iterable[Path] = (),
) -> list[FileRecord]:
    """Collect a FileRecord for every file under `root`.

    Entries are visited in lexical order within each directory and
    subdirectories are descended into where they sort, so the result is
    stable for a given tree.
    Version-control metadata and paths matching `patterns` are left out;
    directories matching a pattern are not descended into.

    Args:
        root (Path): the repository root
        patterns (Sequence[IgnorePattern]): loaded ignore patterns
        exclude (Iterable[Path]): absolute file paths to leave out, such as the
            report itself when it is written inside `root`

    Raises:
        PathError: if `root` does not exist, is not a directory, or cannot be listed

    Returns:
        list[FileRecord]: one record per surviving file
    """
    if not root.exists():
        raise PathError(path=root)
    if not root.is_dir():
        raise PathError(path=root, reason="is not a directory")

    excluded = frozenset(p.resolve() for p in exclude)
    records: list[FileRecord] = []
    _walk_directory(root, root, patterns, excluded, records)
    logger.info("Collected %d files under %s", len(records), root)
    return records
