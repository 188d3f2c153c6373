from __future__ import annotations

import io
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from repo_to_text.config import HISTORY_HEADER, RECORD_MARKER, REPORT_HEADER
from repo_to_text.exceptions import WriteError
from repo_to_text.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_to_text.config import FileRecord


def build_report(recs: Sequence[FileRecord], history: str | None = None) -> str:
    """Build the text report of the repository contents.

    The report starts with a header, then every record as a `## <path>` marker
    followed by its content, and ends with the git history when one is given.
    Embedded marker-like content is not escaped.

    Args:
        recs (Sequence[FileRecord]): the records, in traversal order
        history (str | None): the `git log --oneline` output, or None to leave
            the history section out

    Returns:
        str: the report text
    """
    out = io.StringIO()
    out.write(REPORT_HEADER)
    for rec in recs:
        out.write(RECORD_MARKER.format(rel=rec.rel))
        out.write(rec.content)
        out.write("\n")
    if history is not None:
        out.write(HISTORY_HEADER)
        out.write(history)
    return out.getvalue()


def _default_file_mode() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def write_report(path: Path, text: str) -> Path:
    """Write the report and make sure it reached the disk before returning.

    The text goes to a temporary file next to `path`, which replaces `path`
    only once it is fully written and synced. A failed write leaves any
    previous report untouched and no partial file behind.

    Args:
        path (Path): the destination file
        text (str): the report text

    Raises:
        WriteError: if the text cannot be encoded or the destination cannot be written

    Returns:
        Path: the destination file
    """
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise WriteError(path=path, reason=f"cannot encode report: {e.reason}") from e

    tmp: Path | None = None
    try:
        fd, name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        tmp = Path(name)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp.chmod(_default_file_mode())
        tmp.replace(path)
    except OSError as e:
        if tmp is not None:
            tmp.unlink(missing_ok=True)
        raise WriteError(path=path, reason=e.strerror or str(e)) from e
    logger.info("Wrote report %s (%d characters)", path, len(text))
    return path
