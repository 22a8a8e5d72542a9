"""Locating and rewriting version declarations.

Every declaration kind boils down to the same operation: find the span of
text holding the current version, then swap that span (and only that span)
for the new value. Everything outside the span is written back untouched,
including line endings, so a bump produces the smallest possible diff.

Supported kinds:
- json: string value at a key path (default: top-level "version")
- text: the whole file is the version plus a trailing newline
- constant: ``NAME = '<value>'`` assignment in a source file
- pyproject: ``[project].version``, edited through tomlkit
- regex: user-supplied pattern and replacement template
"""

from __future__ import annotations

import json
import re
from json.decoder import scanstring
from pathlib import Path
from typing import Any, NamedTuple, cast

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import DeclarationNotFound, WriteFailure
from .models import Rewrite, VersionDeclaration
from .toml import get_project_version, load_pyproject, save_pyproject

_JSON_WS = re.compile(r"[ \t\n\r]*")
_JSON_SCALAR = re.compile(
    r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][-+]?\d+)?|true|false|null"
)


class _Located(NamedTuple):
    """Span of the current value inside a file's text."""

    start: int
    end: int
    old: str
    match: re.Match[str] | None = None


def read_declaration(decl: VersionDeclaration, root: Path) -> str:
    """Return the version currently held by a declaration.

    Raises:
        DeclarationNotFound: If the file is missing or the pattern doesn't match.
    """
    path = _target(decl, root)
    if decl.kind == "pyproject":
        return _load_pyproject(decl, path)[1]
    return _locate(decl, _read(decl, path)).old


def rewrite_declaration(
    decl: VersionDeclaration, root: Path, new_version: str
) -> Rewrite:
    """Replace the version held by a declaration with new_version.

    The file is written back in place. Nothing outside the located span
    changes.

    Raises:
        DeclarationNotFound: If the file is missing or the pattern doesn't
            match. The file is left untouched in that case.
    """
    path = _target(decl, root)
    if decl.kind == "pyproject":
        doc, old = _load_pyproject(decl, path)
        # Cast needed because tomlkit types are complex unions
        project = cast(dict[str, Any], doc["project"])
        project["version"] = new_version
        try:
            save_pyproject(path, doc)
        except OSError as exc:
            raise WriteFailure(f"could not write {path}: {exc}") from exc
        return Rewrite(path=decl.path, old=old, new=new_version)

    text = _read(decl, path)
    loc = _locate(decl, text)
    _write(path, text[: loc.start] + _render(decl, loc, new_version) + text[loc.end :])
    return Rewrite(path=decl.path, old=loc.old, new=new_version)


def _target(decl: VersionDeclaration, root: Path) -> Path:
    path = root / decl.path
    if not path.is_file():
        raise DeclarationNotFound(decl.path, decl.describe(), "file not found")
    return path


# Newline translation is disabled on both ends so CRLF files round-trip.
def _read(decl: VersionDeclaration, path: Path) -> str:
    try:
        with open(path, encoding="utf-8", newline="") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise DeclarationNotFound(decl.path, decl.describe(), str(exc)) from exc


def _write(path: Path, text: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as exc:
        raise WriteFailure(f"could not write {path}: {exc}") from exc


def _load_pyproject(
    decl: VersionDeclaration, path: Path
) -> tuple[tomlkit.TOMLDocument, str]:
    try:
        doc = load_pyproject(path)
    except (OSError, UnicodeDecodeError, TOMLKitError) as exc:
        raise DeclarationNotFound(decl.path, decl.describe(), str(exc)) from exc
    version = get_project_version(doc, default=None)
    if version is None:
        raise DeclarationNotFound(decl.path, decl.describe())
    return doc, version


def _locate(decl: VersionDeclaration, text: str) -> _Located:
    if decl.kind == "json":
        return _locate_json(decl, text)
    if decl.kind == "text":
        return _Located(0, len(text), text.rstrip("\r\n"))
    if decl.kind == "constant":
        pattern = re.compile(
            rf"^[ \t]*{re.escape(decl.name)}[ \t]*(?::[^=\n]*)?=[ \t]*"
            r"(?P<quote>['\"])(?P<version>[^'\"\n]*)(?P=quote)",
            re.MULTILINE,
        )
        m = pattern.search(text)
        if m is None:
            raise DeclarationNotFound(decl.path, decl.describe())
        return _Located(m.start("version"), m.end("version"), m.group("version"))
    return _locate_regex(decl, text)


def _locate_regex(decl: VersionDeclaration, text: str) -> _Located:
    try:
        pattern = re.compile(decl.pattern or "", re.MULTILINE)
    except re.error as exc:
        raise DeclarationNotFound(
            decl.path, decl.describe(), f"invalid pattern: {exc}"
        ) from exc
    m = pattern.search(text)
    if m is None:
        raise DeclarationNotFound(decl.path, decl.describe())
    if "version" in pattern.groupindex:
        old = m.group("version")
    elif pattern.groups:
        old = m.group(1)
    else:
        old = m.group(0)
    return _Located(m.start(), m.end(), old or "", m)


def _render(decl: VersionDeclaration, loc: _Located, new_version: str) -> str:
    if decl.kind == "json":
        return json.dumps(new_version, ensure_ascii=False)[1:-1]
    if decl.kind == "text":
        return new_version + "\n"
    if decl.kind == "regex":
        # The model validator guarantees a template for regex declarations.
        match = cast(re.Match[str], loc.match)
        template = cast(str, decl.template)
        # Backslashes in the version must survive Match.expand() literally.
        literal = new_version.replace("\\", "\\\\")
        return match.expand(template.replace("{version}", literal))
    return new_version


def _locate_json(decl: VersionDeclaration, text: str) -> _Located:
    """Find the string value at decl.key without re-serializing the document."""
    try:
        json.loads(text)
    except ValueError as exc:
        raise DeclarationNotFound(
            decl.path, decl.describe(), f"invalid JSON: {exc}"
        ) from exc

    target = tuple(decl.key)
    found: list[_Located] = []

    def ws(i: int) -> int:
        return _JSON_WS.match(text, i).end()  # type: ignore[union-attr]

    def value(i: int, path: tuple[str | None, ...]) -> int:
        i = ws(i)
        ch = text[i]
        if ch == "{":
            i = ws(i + 1)
            if text[i] == "}":
                return i + 1
            while True:
                key, i = scanstring(text, i + 1)
                i = ws(i) + 1  # past ':'
                child = (*path, key)
                start = ws(i)
                if not found and child == target and text[start] == '"':
                    old, end = scanstring(text, start + 1)
                    found.append(_Located(start + 1, end - 1, old))
                i = ws(value(start, child))
                if text[i] == "}":
                    return i + 1
                i = ws(i + 1)  # past ','
        if ch == "[":
            i = ws(i + 1)
            if text[i] == "]":
                return i + 1
            while True:
                # Array elements are never addressable by a key path.
                i = ws(value(i, (*path, None)))
                if text[i] == "]":
                    return i + 1
                i += 1
        if ch == '"':
            return scanstring(text, i + 1)[1]
        return _JSON_SCALAR.match(text, i).end()  # type: ignore[union-attr]

    value(0, ())
    if not found:
        raise DeclarationNotFound(decl.path, decl.describe())
    return found[0]
