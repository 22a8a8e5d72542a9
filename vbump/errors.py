"""Error taxonomy for vbump.

Every failure a bump can hit is a BumpError subclass. The ``step`` attribute
names the phase that failed so the CLI can report it without inspecting the
exception type.
"""

from __future__ import annotations

from .shell import GitError


class BumpError(Exception):
    """Base class for all bump failures."""

    step = "bump"


class MissingArgument(BumpError):
    """No version (or an empty one) was supplied."""

    step = "argument"


class ConfigError(BumpError):
    """The declaration configuration could not be loaded or validated."""

    step = "config"


class InvalidWorkingTree(BumpError):
    """The checkout is unusable: not a git repo, or holds unrelated changes."""

    step = "preflight"


class DeclarationNotFound(BumpError):
    """A configured declaration did not match its target file.

    Attributes:
        path: File the declaration points at, relative to the tree root.
        pattern: Human-readable description of what was searched for.
    """

    step = "rewrite"

    def __init__(self, path: str, pattern: str, reason: str = "pattern not found") -> None:
        self.path = path
        self.pattern = pattern
        super().__init__(f"{path}: {reason} ({pattern})")


class WriteFailure(BumpError):
    """A rewritten file could not be written back to disk."""

    step = "rewrite"


class GitStepFailure(BumpError):
    """A git command behind one of the bump steps failed.

    Carries the underlying GitError (when there is one) so callers can get
    at git's own message and exit status.
    """

    def __init__(self, message: str, cause: GitError | None = None) -> None:
        self.cause = cause
        if cause is not None and cause.stderr:
            message = f"{message}: {cause.stderr}"
        super().__init__(message)


class StagingFailure(GitStepFailure):
    step = "stage"


class CommitFailure(GitStepFailure):
    step = "commit"


class TagFailure(GitStepFailure):
    step = "tag"
