"""
repo-to-text: flatten a local repository into a single text file.

Overview
--------
Walks every file under the given directory and writes one plain-text report:

    # File Tree and Contents

    ## <relative path>
    <content>
    ...

    # Git History

    <git log --oneline>

Binary files (a null byte within their first 512 bytes) are replaced by a
placeholder, unreadable files by an inline error, `.git/` is skipped, and
paths matching the root `.gitignore` are left out (simplified glob matching,
no negation). The history section is dropped when `git log` fails unless
`--history-policy fail` is given.

Usage
-----
    repo-to-text path/to/repo
    repo-to-text path/to/repo --output snapshot.txt --no-history
    repo-to-text path/to/repo --config repo-to-text.yaml --log-file export.log

Settings can also come from `REPO_TO_TEXT_*` environment variables or a `.env`
file; explicit flags win over the config file, which wins over the environment.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from repo_to_text import __version__
from repo_to_text.config import DEFAULT_OUTPUT, HistoryPolicy
from repo_to_text.exceptions import RepoToTextError
from repo_to_text.file_manipulation import walk_tree
from repo_to_text.history import collect_history
from repo_to_text.ignore_patterns import load_ignore_patterns
from repo_to_text.logging import logger, setup_logging
from repo_to_text.output_construction import build_report, write_report
from repo_to_text.settings import Settings, build_settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def parse_timeout(value: str) -> float | None:
    """Parse a `--history-timeout` value; `0` or `none` means no limit.

    Raises:
        argparse.ArgumentTypeError: if the value is not a non-negative number
    """
    normalized = value.strip().lower()
    if normalized == "none":
        return None
    try:
        seconds = float(normalized)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid timeout: {value!r}") from e
    if not seconds >= 0:
        raise argparse.ArgumentTypeError(f"timeout must be >= 0: {value!r}")
    return seconds or None


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Optional flags default to `argparse.SUPPRESS` so that only values given on
    the command line override the config file and environment.

    Returns:
        argparse.ArgumentParser: the parser
    """
    p = argparse.ArgumentParser(
        prog="repo-to-text",
        description="Convert a local repository into a text file.",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("repo", type=Path, help="Repository root to export.")
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Output file name (default: {DEFAULT_OUTPUT}).",
    )
    p.add_argument(
        "--ignore-file",
        type=str,
        help="Ignore-spec file at the repository root (default: .gitignore, '' disables).",
    )
    p.add_argument(
        "--no-history",
        dest="history",
        action="store_false",
        help="Do not append the git history.",
    )
    p.add_argument(
        "--history-policy",
        type=HistoryPolicy,
        choices=list(HistoryPolicy),
        help="On git log failure: omit the section (default) or fail the run.",
    )
    p.add_argument(
        "--history-timeout",
        type=parse_timeout,
        help="Seconds to wait for git log (default: 30, 0 or none waits forever).",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with default settings.",
    )
    p.add_argument("--log-file", type=str, help="Log file path.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug events.")
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line arguments into Settings.

    Args:
        argv (Sequence[str] | None): arguments, defaults to `sys.argv[1:]`

    Raises:
        ConfigError: if the config file or a merged value is invalid

    Returns:
        Settings: the merged settings
    """
    args = vars(build_parser().parse_args(argv))
    config_file = args.pop("config")
    return build_settings(args, config_file=config_file)


def convert_repo_to_text(settings: Settings) -> Path:
    """Export the repository described by `settings` into its output file.

    The root is validated and walked, and the history fetched, before the
    output file is opened: a fatal error leaves no output behind.

    Args:
        settings (Settings): the run configuration

    Raises:
        PathError: if the repository root is missing or unreadable
        RunError: if git log fails and the history policy is FAIL
        WriteError: if the output file cannot be written

    Returns:
        Path: the written output file
    """
    repo = settings.repo
    output = settings.output
    logger.info("Exporting %s to %s", repo, output)

    patterns = load_ignore_patterns(repo, settings.ignore_file) if repo.is_dir() else []
    recs = walk_tree(repo, patterns, exclude=[output])

    history: str | None = None
    if settings.history:
        history = collect_history(
            repo,
            policy=settings.history_policy,
            timeout=settings.history_timeout,
        )

    return write_report(output, build_report(recs, history))


def main(argv: Sequence[str] | None = None) -> int:
    """Run the export and report the outcome.

    Args:
        argv (Sequence[str] | None): arguments, defaults to `sys.argv[1:]`

    Returns:
        int: 0 on success, 1 when the export fails (the error goes to stderr)
    """
    try:
        settings = parse_args(argv)
        if settings.log_file or settings.verbose:
            setup_logging(
                settings.log_file or None,
                level=logging.DEBUG if settings.verbose else logging.INFO,
            )
        output = convert_repo_to_text(settings)
    except RepoToTextError as e:
        logger.error("Export failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Repository contents saved to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
