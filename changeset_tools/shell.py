"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running shell commands
and git operations, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import NoReturn


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Directory to run in; the current directory when omitted.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., fetches).

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def run(
    *args: str, cwd: Path | None = None, check: bool = True
) -> subprocess.CompletedProcess[bytes]:
    """Run an arbitrary shell command.

    Unlike git(), this doesn't capture output - it streams directly to
    the terminal so users can see changesets' own output.

    Args:
        *args: Command and arguments (e.g., "yarn", "changeset", "version").
        cwd: Directory to run in; the current directory when omitted.
        check: If True (default), raise on non-zero exit.

    Returns:
        CompletedProcess with returncode for checking success.
    """
    return subprocess.run(args, cwd=cwd, check=check)


def commit_files(
    paths: list[str], message: str, *extra_paragraphs: str, cwd: Path | None = None
) -> None:
    """Stage exactly the given paths and commit them, bypassing git hooks.

    Each extra paragraph becomes its own ``-m`` argument, e.g. "[skip ci]".
    """
    git("add", "--", *paths, cwd=cwd)
    messages: list[str] = []
    for paragraph in (message, *extra_paragraphs):
        messages.extend(["-m", paragraph])
    git("commit", *messages, "--no-verify", cwd=cwd)


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of a script run in CI output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a recoverable warning to stderr."""
    print(f"  Warning: {msg}", file=sys.stderr)


def fatal(msg: str) -> NoReturn:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the script.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
