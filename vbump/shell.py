"""Shell and git utilities.

Provides a thin wrapper around subprocess for running git inside a
checkout, plus an output formatting helper for progress headers.
"""

from __future__ import annotations

import subprocess
from pathlib import Path


class GitError(Exception):
    """A git command exited non-zero.

    Attributes:
        git_args: The git arguments (without the leading "git").
        returncode: Exit status reported by git.
        stderr: Whatever git printed to stderr, stripped.
    """

    def __init__(self, args: tuple[str, ...], returncode: int, stderr: str) -> None:
        self.git_args = args
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr or f"exit status {returncode}"
        super().__init__(f"git {' '.join(args)}: {detail}")


def git(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain").
        cwd: Directory to run git in. Defaults to the process cwd.
        check: If True (default), raise GitError on non-zero exit. Set to
               False for commands that may legitimately fail (e.g., tag lookup).

    Returns:
        Stdout from the git command with trailing whitespace removed.
        Leading whitespace is kept since porcelain formats depend on it.
    """
    try:
        result = subprocess.run(
            ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
        )
    except subprocess.CalledProcessError as exc:
        raise GitError(args, exc.returncode, (exc.stderr or "").strip()) from exc
    except FileNotFoundError as exc:
        raise GitError(args, 127, "git executable not found") from exc
    return result.stdout.rstrip()


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of a bump in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")
