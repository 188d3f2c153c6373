from __future__ import annotations

import subprocess  # noqa: S404
from typing import TYPE_CHECKING

from repo_to_text.config import DEFAULT_HISTORY_TIMEOUT, HistoryPolicy
from repo_to_text.exceptions import RunError
from repo_to_text.logging import logger

if TYPE_CHECKING:
    from pathlib import Path


def git_log_command(repo: Path) -> list[str]:
    """Build the `git log --oneline` command for `repo`.

    Args:
        repo (Path): the repository root

    Returns:
        list[str]: the argv to run
    """
    return ["git", "-C", str(repo), "log", "--oneline"]


def fetch_git_history(repo: Path, timeout: float | None = DEFAULT_HISTORY_TIMEOUT) -> str:
    """Get the condensed commit log of `repo`, one line per commit.

    Args:
        repo (Path): the repository root
        timeout (float | None): seconds to wait for git; None waits forever

    Raises:
        RunError: if git is missing, exits with an error, or times out

    Returns:
        str: the standard output of `git log --oneline`
    """
    cmd = git_log_command(repo)
    command = " ".join(cmd)
    try:
        out = subprocess.run(  # noqa: S603
            cmd,
            text=True,
            capture_output=True,
            check=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise RunError(command=command, returncode=None, stderr="git executable not found") from e
    except subprocess.CalledProcessError as e:
        raise RunError(
            command=command,
            returncode=e.returncode,
            stdout=e.stdout or "",
            stderr=e.stderr or "",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise RunError(command=command, returncode=None, stderr=f"timed out after {timeout}s") from e
    return out.stdout


def collect_history(
    repo: Path,
    *,
    policy: HistoryPolicy,
    timeout: float | None = DEFAULT_HISTORY_TIMEOUT,
) -> str | None:
    """Fetch the git history and apply the failure policy.

    Args:
        repo (Path): the repository root
        policy (HistoryPolicy): OMIT drops the history on failure, FAIL re-raises
        timeout (float | None): seconds to wait for git

    Raises:
        RunError: if fetching fails and `policy` is FAIL

    Returns:
        str | None: the history text, or None when it was omitted
    """
    try:
        return fetch_git_history(repo, timeout=timeout)
    except RunError as e:
        if policy is HistoryPolicy.FAIL:
            raise
        logger.warning("Omitting git history: %s", e)
        return None
