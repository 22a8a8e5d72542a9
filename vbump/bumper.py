"""Bump pipeline: preflight → rewrite → stage → commit → tag.

This module orchestrates a version bump against one checkout:
1. Check the tree is a git repo with no unrelated uncommitted changes and
   that the release tag is still free
2. Rewrite every declaration, in order, to the new version
3. Stage the rewritten files
4. Commit them as "Bump to v<version>"
5. Tag that commit "v<version>"

Steps run strictly in sequence and the first failure stops the run.
Nothing is rolled back: files rewritten before a failure stay rewritten,
and the caller is expected to inspect and reset the tree before retrying.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .declarations import rewrite_declaration
from .errors import (
    CommitFailure,
    InvalidWorkingTree,
    MissingArgument,
    StagingFailure,
    TagFailure,
)
from .models import CommitRecord, Rewrite, VersionDeclaration
from .shell import GitError, git, step


class WorkingTree:
    """Handle on a git checkout; every git call runs inside its root."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

    def __repr__(self) -> str:
        return f"WorkingTree({str(self.root)!r})"

    def git(self, *args: str, check: bool = True) -> str:
        return git(*args, cwd=self.root, check=check)

    def is_repo(self) -> bool:
        try:
            return self.git("rev-parse", "--is-inside-work-tree") == "true"
        except GitError:
            return False

    def dirty_paths(self) -> list[str]:
        """Tracked paths with staged or unstaged changes, relative to root.

        Untracked files are left out since the bump commit never picks them up.
        """
        out = self.git("status", "--porcelain", "-z", "--untracked-files=no", ".")
        prefix = self.git("rev-parse", "--show-prefix")
        entries = out.split("\0")
        paths: list[str] = []
        i = 0
        while i < len(entries):
            entry = entries[i]
            i += 1
            if len(entry) < 4:
                continue
            status, path = entry[:2], entry[3:]
            if status[0] in "RC":
                # Renames/copies are followed by the original path.
                i += 1
            paths.append(path.removeprefix(prefix))
        return paths

    def tag_exists(self, name: str) -> bool:
        ref = f"refs/tags/{name}"
        return bool(self.git("rev-parse", "-q", "--verify", ref, check=False))

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")


def check_working_tree(
    tree: WorkingTree,
    declarations: Sequence[VersionDeclaration],
    tag: str,
    allow_dirty: bool = False,
) -> None:
    """Fail fast before any file is touched.

    Raises:
        InvalidWorkingTree: If root isn't a git checkout, or (unless
            allow_dirty) files outside the declarations have uncommitted
            changes that would be folded into the bump commit.
        TagFailure: If the release tag already exists.
    """
    step("Checking working tree")

    if not tree.is_repo():
        raise InvalidWorkingTree(f"{tree.root} is not a git working tree")

    if not allow_dirty:
        declared = {Path(d.path).as_posix() for d in declarations}
        unrelated = [p for p in tree.dirty_paths() if p not in declared]
        if unrelated:
            listing = "\n".join(f"  {p}" for p in unrelated)
            raise InvalidWorkingTree(
                "uncommitted changes outside the version files "
                f"(commit or stash them first):\n{listing}"
            )

    if tree.tag_exists(tag):
        raise TagFailure(f"tag {tag} already exists")

    print(f"  {tree.root}: ok")


def rewrite_declarations(
    tree: WorkingTree,
    declarations: Sequence[VersionDeclaration],
    new_version: str,
) -> list[Rewrite]:
    """Rewrite each declaration in order.

    Stops at the first DeclarationNotFound; earlier rewrites stay on disk.
    """
    step(f"Rewriting {len(declarations)} declarations")

    rewrites: list[Rewrite] = []
    for decl in declarations:
        rewrite = rewrite_declaration(decl, tree.root, new_version)
        rewrites.append(rewrite)
        print(f"  {rewrite.path}: {rewrite.old} → {rewrite.new}")
    return rewrites


def stage_files(tree: WorkingTree, paths: Sequence[str]) -> None:
    """Stage each path once, in declaration order."""
    step("Staging")
    for path in paths:
        try:
            tree.git("add", "--", path)
        except GitError as exc:
            raise StagingFailure(f"could not stage {path}", exc) from exc
        print(f"  {path}")


def commit_bump(tree: WorkingTree, message: str) -> str:
    """Commit the staged bump and return the new commit's SHA.

    The commit is created even when the rewrite left every file unchanged,
    so each bump yields exactly one commit.
    """
    step("Committing")
    try:
        tree.git("commit", "--allow-empty", "-m", message)
        sha = tree.head()
    except GitError as exc:
        raise CommitFailure("could not create commit", exc) from exc
    print(f"  {sha[:12]} {message}")
    return sha


def create_tag(tree: WorkingTree, tag: str, message: str, annotate: bool) -> None:
    """Tag HEAD, lightweight unless annotate is set."""
    step("Tagging")
    args = ["tag", "-a", tag, "-m", message] if annotate else ["tag", tag]
    try:
        tree.git(*args)
    except GitError as exc:
        raise TagFailure(f"could not create tag {tag}", exc) from exc
    print(f"  {tag}")


def bump(
    new_version: str,
    declarations: Sequence[VersionDeclaration],
    tree: WorkingTree,
    *,
    tag_prefix: str = "v",
    message: str = "Bump to v{version}",
    annotate: bool = False,
    allow_dirty: bool = False,
) -> CommitRecord:
    """Rewrite all declarations to new_version, then commit and tag.

    Args:
        new_version: Literal version written verbatim to every declaration.
        declarations: Ordered declarations to rewrite; order sets staging order.
        tree: Checkout to operate on.
        tag_prefix: Prepended to new_version to name the tag.
        message: Commit message; ``{version}`` is replaced by new_version.
        annotate: Create an annotated tag instead of a lightweight one.
        allow_dirty: Skip the unrelated-changes check.

    Raises:
        MissingArgument: If new_version is empty.
        InvalidWorkingTree, DeclarationNotFound, StagingFailure,
        CommitFailure, TagFailure: From the step that failed.
    """
    if not new_version:
        raise MissingArgument("a version is required")

    tag = f"{tag_prefix}{new_version}"
    commit_message = message.replace("{version}", new_version)

    check_working_tree(tree, declarations, tag, allow_dirty=allow_dirty)
    rewrites = rewrite_declarations(tree, declarations, new_version)

    # Several declarations may share a file; stage it once.
    paths = list(dict.fromkeys(r.path for r in rewrites))
    stage_files(tree, paths)
    sha = commit_bump(tree, commit_message)
    create_tag(tree, tag, commit_message, annotate)

    print(f"\n{'=' * 60}\nBumped to {new_version} ({tag})\n{'=' * 60}")
    return CommitRecord(
        version=new_version,
        sha=sha,
        tag=tag,
        message=commit_message,
        paths=paths,
        rewrites=rewrites,
    )
