"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying
pyproject.toml files, and to load the declaration config from either a
standalone ``.vbump.toml`` or the ``[tool.vbump]`` table of pyproject.toml.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError
from .models import BumpConfig, VersionDeclaration

CONFIG_FILENAME = ".vbump.toml"

# Files `vbump init` knows how to declare, keyed by path.
WELL_KNOWN_FILES: dict[str, list[dict[str, Any]]] = {
    "package.json": [{"kind": "json"}],
    "package-lock.json": [
        {"kind": "json"},
        {"kind": "json", "key": ["packages", "", "version"]},
    ],
    "pyproject.toml": [{"kind": "pyproject"}],
    "VERSION": [{"kind": "text"}],
    "version.txt": [{"kind": "text"}],
}


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    Line endings are read untranslated so CRLF files round-trip.
    """
    with open(path, encoding="utf-8", newline="") as fh:
        return tomlkit.parse(fh.read())


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(tomlkit.dumps(doc))


def get_project_version(
    doc: tomlkit.TOMLDocument, default: str | None = "0.0.0"
) -> str | None:
    """Extract version from [project].version, falling back to default."""
    version = doc.get("project", {}).get("version")
    return default if version is None else str(version)


def default_declarations(root: Path) -> list[VersionDeclaration]:
    """Declarations used when a project has no config of its own.

    Mirrors what ``npm version`` touches: package.json always, plus the
    top-level and root-package versions in package-lock.json when one exists.
    """
    decls = [VersionDeclaration(path="package.json", kind="json")]
    if (root / "package-lock.json").exists():
        decls.extend(
            VersionDeclaration(path="package-lock.json", **fields)
            for fields in WELL_KNOWN_FILES["package-lock.json"]
        )
    return decls


def load_config(root: Path, config_path: Path | None = None) -> BumpConfig:
    """Load the bump config for the checkout at root.

    Lookup order:
    1. config_path, if given (``[tool.vbump]`` when it's a pyproject.toml)
    2. ``.vbump.toml`` in root
    3. ``[tool.vbump]`` in root's pyproject.toml
    4. default_declarations()

    Raises:
        ConfigError: If the selected file is unreadable, isn't valid TOML, or
            doesn't validate.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"config file not found: {config_path}")
        table = _read_table(config_path)
        if table is None:
            raise ConfigError(f"{config_path}: no [tool.vbump] table")
        return _validate(table, config_path)

    for candidate in (root / CONFIG_FILENAME, root / "pyproject.toml"):
        if candidate.is_file():
            table = _read_table(candidate)
            if table is not None:
                return _validate(table, candidate)

    return BumpConfig(declarations=default_declarations(root))


def render_config(declarations: list[VersionDeclaration]) -> str:
    """Serialize declarations into the contents of a ``.vbump.toml``."""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("Version declarations rewritten by `vbump bump`."))
    doc.add("tag-prefix", "v")
    doc.add("message", "Bump to v{version}")
    doc.add("annotate", False)

    decls = tomlkit.aot()
    for decl in declarations:
        table = tomlkit.table()
        table.add("path", decl.path)
        table.add("kind", decl.kind)
        if decl.kind == "json" and decl.key != ["version"]:
            table.add("key", decl.key)
        if decl.kind == "constant":
            table.add("name", decl.name)
        if decl.kind == "regex":
            table.add("pattern", decl.pattern)
            table.add("template", decl.template)
        decls.append(table)
    doc.add(tomlkit.nl())
    doc.add("declarations", decls)
    return tomlkit.dumps(doc)


def _read_table(path: Path) -> dict[str, Any] | None:
    """Return the vbump settings table of a TOML file, or None if absent."""
    try:
        data = tomlkit.parse(path.read_text()).unwrap()
    except (OSError, TOMLKitError) as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    if path.name == "pyproject.toml":
        return data.get("tool", {}).get("vbump")
    return data


def _validate(table: dict[str, Any], source: Path) -> BumpConfig:
    try:
        config = BumpConfig.model_validate(table)
    except ValidationError as exc:
        raise ConfigError(f"{source}: {exc}") from exc
    if not config.declarations:
        raise ConfigError(f"{source}: no declarations configured")
    return config
