from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepoToTextError(Exception):
    """Base exception for errors in the repo_to_text package."""

    def __str__(self) -> str:
        return self.describe()

    def describe(self) -> str:
        """Human-readable message printed by the CLI.

        Returns:
            str: the error message
        """
        return (self.__doc__ or type(self).__name__).strip()


@dataclass(frozen=True)
class PathError(RepoToTextError):
    """Raised when the repository root is missing or cannot be traversed."""

    path: Path
    reason: str = "does not exist"

    def describe(self) -> str:
        return f"repository path {self.path} {self.reason}"


@dataclass(frozen=True)
class ReadError(RepoToTextError):
    """Raised when a single file cannot be opened or decoded."""

    path: Path
    reason: str

    def describe(self) -> str:
        return self.reason


@dataclass(frozen=True)
class WriteError(RepoToTextError):
    """Raised when the report destination cannot be created or written."""

    path: Path
    reason: str

    def describe(self) -> str:
        return f"failed to write output file {self.path}: {self.reason}"


@dataclass(frozen=True)
class RunError(RepoToTextError):
    """Raised when the git history command fails."""

    command: str
    returncode: int | None
    stdout: str = ""
    stderr: str = ""

    def describe(self) -> str:
        detail = self.stderr.strip() or f"exit status {self.returncode}"
        return f"failed to get Git history ({self.command}): {detail}"


@dataclass(frozen=True)
class ConfigError(RepoToTextError):
    """Raised when the settings cannot be loaded or validated."""

    path: Path | None
    reason: str

    def describe(self) -> str:
        if self.path is None:
            return f"invalid configuration: {self.reason}"
        return f"invalid configuration file {self.path}: {self.reason}"
