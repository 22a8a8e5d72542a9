"""Shared test fixtures."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from vbump.bumper import WorkingTree
from vbump.shell import git

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

PACKAGE_JSON = """\
{
  "name": "x",
  "version": "1.0.0",
  "extra": {
    "version": "9.9.9",
    "list": [1, 2.5, true, null, {"version": "0.0.1"}]
  }
}
"""


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
# top comment
[project]
name = "test-package"
version = "1.0.0"  # keep me
dependencies = [
    "requests>=2.0",
]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A git checkout with package.json and version.txt at 1.0.0, committed."""
    root = tmp_path / "repo"
    root.mkdir()
    git("init", "-q", cwd=root)
    git("config", "user.name", "Test User", cwd=root)
    git("config", "user.email", "test@example.com", cwd=root)
    git("config", "commit.gpgsign", "false", cwd=root)
    git("config", "tag.gpgsign", "false", cwd=root)

    (root / "package.json").write_text(PACKAGE_JSON)
    (root / "version.txt").write_text("1.0.0\n")
    git("add", ".", cwd=root)
    git("commit", "-q", "-m", "initial", cwd=root)
    return root


@pytest.fixture
def tree(git_repo: Path) -> WorkingTree:
    return WorkingTree(git_repo)


@pytest.fixture
def package_json_text() -> str:
    """package.json contents with nested "version" keys as decoys."""
    return PACKAGE_JSON
