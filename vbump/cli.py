"""CLI entry point for vbump."""

from __future__ import annotations

from pathlib import Path

import click

from vbump.bumper import WorkingTree, bump
from vbump.declarations import read_declaration
from vbump.errors import BumpError, MissingArgument
from vbump.models import VersionDeclaration
from vbump.toml import CONFIG_FILENAME, WELL_KNOWN_FILES, load_config, render_config
from vbump.versions import BUMP_KEYWORDS, resolve_version

_root_option = click.option(
    "-C",
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Working tree to operate on.",
)
_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file (default: {CONFIG_FILENAME} or [tool.vbump] in pyproject.toml).",
)


def _fail(exc: BumpError) -> click.ClickException:
    return click.ClickException(f"{exc.step} failed: {exc}")


@click.group()
@click.version_option(package_name="vbump")
def cli() -> None:
    """Rewrite version declarations, then commit and tag the bump."""


@cli.command("bump")
@click.argument("version", required=False)
@_root_option
@_config_option
@click.option("--annotate", is_flag=True, help="Create an annotated tag.")
@click.option(
    "--allow-dirty",
    is_flag=True,
    help="Don't refuse to run when unrelated files have uncommitted changes.",
)
def bump_cmd(
    version: str | None,
    root: Path,
    config_path: Path | None,
    annotate: bool,
    allow_dirty: bool,
) -> None:
    """Bump every declaration to VERSION, then commit and tag.

    VERSION is written verbatim, or is one of major, minor, patch to bump
    the current version of the first declaration.
    """
    try:
        if not version:
            raise MissingArgument("usage: vbump bump <new-version>")
        tree = WorkingTree(root)
        config = load_config(tree.root, config_path)

        if version in BUMP_KEYWORDS:
            current = read_declaration(config.declarations[0], tree.root)
            try:
                version = resolve_version(version, current)
            except ValueError as exc:
                raise click.ClickException(
                    f"cannot {version}-bump current version {current!r}: {exc}"
                ) from exc
            click.echo(f"Resolved {current} → {version}")

        record = bump(
            version,
            config.declarations,
            tree,
            tag_prefix=config.tag_prefix,
            message=config.message,
            annotate=annotate or config.annotate,
            allow_dirty=allow_dirty or config.allow_dirty,
        )
    except BumpError as exc:
        raise _fail(exc) from exc

    click.echo(f"✓ {record.sha[:12]} {record.message}")
    click.echo(f"✓ Tagged {record.tag}")


@cli.command()
@_root_option
@_config_option
def show(root: Path, config_path: Path | None) -> None:
    """List configured declarations and their current values."""
    tree = WorkingTree(root)
    try:
        config = load_config(tree.root, config_path)
    except BumpError as exc:
        raise _fail(exc) from exc

    missing = 0
    for decl in config.declarations:
        try:
            current = read_declaration(decl, tree.root)
        except BumpError as exc:
            missing += 1
            click.echo(f"  {decl.path} [{decl.describe()}]: <{exc}>")
            continue
        click.echo(f"  {decl.path} [{decl.describe()}]: {current}")

    if missing:
        raise click.ClickException(f"{missing} declaration(s) not found")


@cli.command()
@_root_option
@click.option("--force", is_flag=True, help=f"Overwrite an existing {CONFIG_FILENAME}.")
def init(root: Path, force: bool) -> None:
    """Scaffold a .vbump.toml for the version files found in ROOT."""
    dest = root / CONFIG_FILENAME
    if dest.exists() and not force:
        raise click.ClickException(f"{CONFIG_FILENAME} already exists (use --force).")

    declarations: list[VersionDeclaration] = []
    for path, entries in WELL_KNOWN_FILES.items():
        for fields in entries:
            decl = VersionDeclaration(path=path, **fields)
            try:
                read_declaration(decl, root)
            except BumpError:
                continue
            declarations.append(decl)
    if not declarations:
        known = ", ".join(WELL_KNOWN_FILES)
        raise click.ClickException(
            f"No version files found. Looked for: {known}.\n"
            f"Write {CONFIG_FILENAME} by hand, e.g.:\n\n"
            "  [[declarations]]\n"
            '  path = "src/app/_version.py"\n'
            '  kind = "constant"\n'
            '  name = "VERSION"'
        )

    dest.write_text(render_config(declarations))

    click.echo(f"✓ Wrote {dest}")
    for decl in declarations:
        click.echo(f"  {decl.path} [{decl.describe()}]")
    click.echo()
    click.echo("Next steps:")
    click.echo(f"  1. Review {CONFIG_FILENAME} and add any source constants")
    click.echo("  2. Bump:")
    click.echo("       vbump bump 1.2.3")
    click.echo("       vbump bump patch")
