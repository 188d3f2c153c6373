from __future__ import annotations

import fnmatch
import os
import re
from dataclasses import dataclass
from enum import StrEnum, auto

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_OUTPUT = "repo_contents.txt"
DEFAULT_IGNORE_FILE = ".gitignore"
DEFAULT_HISTORY_TIMEOUT = 30.0

VCS_METADATA_DIRS = frozenset({".git"})

BINARY_PROBE_SIZE = 512
BINARY_PLACEHOLDER = "[Binary file content omitted]"
READ_ERROR_PLACEHOLDER = "[Error reading file: {reason}]"

REPORT_HEADER = "# File Tree and Contents\n\n"
RECORD_MARKER = "## {rel}\n"
HISTORY_HEADER = "\n# Git History\n\n"

ENV_PREFIX = "REPO_TO_TEXT_"


class HistoryPolicy(StrEnum):
    """What to do when the git history cannot be fetched."""

    OMIT = auto()
    FAIL = auto()


class RecordKind(StrEnum):
    """How the content of a FileRecord was obtained."""

    TEXT = auto()
    BINARY = auto()
    ERROR = auto()


class FileRecord(BaseModel):
    """One file of the report.

    Attributes:
        rel: Path relative to the repository root, with host separators.
        content: Normalized text, the binary placeholder, or an error placeholder.
        kind: Which of the three the content is.
    """

    model_config = ConfigDict(frozen=True)

    rel: str = Field(..., description="File path relative to repository root")
    content: str = Field(default="", description="Rendered file content")
    kind: RecordKind = Field(default=RecordKind.TEXT, description="Content origin")


@dataclass(frozen=True)
class IgnorePattern:
    """A compiled line of the ignore-spec file.

    Patterns follow a simplified gitignore grammar: `*` may cross separators,
    a trailing separator restricts the pattern to directories, and a pattern
    containing a separator is matched against the whole relative path only.
    """

    raw: str
    regex: re.Pattern[str]
    dir_only: bool = False
    anchored: bool = False

    def matches(self, rel: str, *, is_dir: bool = False) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.regex.match(rel):
            return True
        if self.anchored:
            return False
        return bool(self.regex.match(os.path.basename(rel)))


def translate_glob(glob: str) -> re.Pattern[str]:
    """Compile a glob into a regular expression.

    Args:
        glob (str): the glob, already normalized to host separators

    Raises:
        re.error: if the translated expression does not compile

    Returns:
        re.Pattern[str]: the compiled expression
    """
    return re.compile(fnmatch.translate(glob))
