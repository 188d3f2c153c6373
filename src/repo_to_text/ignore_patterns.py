"""Load and match root-level ignore-spec files (a simplified `.gitignore`)."""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING

from repo_to_text.config import DEFAULT_IGNORE_FILE, IgnorePattern, translate_glob
from repo_to_text.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

COMMENT_MARKER = "#"
NEGATION_MARKER = "!"


def normalize_separators(line: str) -> str:
    """Rewrite both `/` and `\\` to the host separator.

    Args:
        line (str): a pattern or a relative path

    Returns:
        str: the same text using `os.sep` only
    """
    return line.replace("\\", "/").replace("/", os.sep)


def compile_ignore_pattern(line: str) -> IgnorePattern | None:
    """Compile one line of an ignore-spec file.

    Args:
        line (str): the raw line

    Returns:
        IgnorePattern | None: the compiled pattern, or None for blank lines,
            comments, and lines the simplified grammar cannot express
    """
    raw = line.strip()
    if not raw or raw.startswith(COMMENT_MARKER):
        return None
    if raw.startswith(NEGATION_MARKER):
        logger.debug("Negated ignore pattern not supported, skipping: %s", raw)
        return None

    glob = normalize_separators(raw)
    dir_only = glob.endswith(os.sep)
    glob = glob.rstrip(os.sep)
    anchored = os.sep in glob
    glob = glob.lstrip(os.sep)
    if not glob:
        logger.debug("Empty ignore pattern, skipping: %s", raw)
        return None
    try:
        regex = translate_glob(glob)
    except re.error as e:
        logger.debug("Invalid ignore pattern %s: %s", raw, e)
        return None
    return IgnorePattern(raw=raw, regex=regex, dir_only=dir_only, anchored=anchored)


def parse_ignore_lines(lines: Iterable[str]) -> list[IgnorePattern]:
    """Compile every usable line, keeping file order.

    Args:
        lines (Iterable[str]): lines of an ignore-spec file

    Returns:
        list[IgnorePattern]: the compiled patterns
    """
    out: list[IgnorePattern] = []
    for line in lines:
        pattern = compile_ignore_pattern(line)
        if pattern is not None:
            out.append(pattern)
    return out


def load_ignore_patterns(root: Path, filename: str = DEFAULT_IGNORE_FILE) -> list[IgnorePattern]:
    """Load the ignore-spec file located at the repository root.

    A missing or unreadable file is not an error: filtering is simply disabled.

    Args:
        root (Path): the repository root
        filename (str): name of the ignore-spec file; empty disables loading

    Returns:
        list[IgnorePattern]: the compiled patterns, in file order
    """
    if not filename:
        return []
    path = root / filename
    if not path.is_file():
        logger.debug("No ignore file at %s", path)
        return []
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Cannot read ignore file %s: %s", path, e)
        return []
    patterns = parse_ignore_lines(text.splitlines())
    logger.debug("Loaded %d ignore patterns from %s", len(patterns), path)
    return patterns


def is_ignored(rel: str, patterns: Sequence[IgnorePattern], *, is_dir: bool = False) -> bool:
    """Check whether a relative path matches any ignore pattern.

    Args:
        rel (str): path relative to the repository root, host separators
        patterns (Sequence[IgnorePattern]): the loaded patterns
        is_dir (bool): whether `rel` names a directory

    Returns:
        bool: True if the path must be left out of the report
    """
    return any(p.matches(rel, is_dir=is_dir) for p in patterns)
