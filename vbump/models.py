"""Data models for vbump.

These Pydantic models describe what to rewrite (declarations and the
surrounding config) and what a finished bump produced.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DeclarationKind = Literal["json", "text", "constant", "pyproject", "regex"]


class VersionDeclaration(BaseModel):
    """Where and how a version string appears in one tracked file.

    Attributes:
        path: File path relative to the working tree root.
        kind: Format of the declaration; selects how it is located.
        key: For ``json``, the key path to the string value. Defaults to the
             top-level ``"version"`` field.
        name: For ``constant``, the name assigned to (``VERSION = '1.0'``).
        pattern: For ``regex``, the expression locating the declaration. A
                 ``version`` named group, if present, marks the current value.
        template: For ``regex``, the replacement for the matched region.
                  ``{version}`` is the new version; ``\\g<name>`` back-references
                  groups of the match.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    kind: DeclarationKind
    key: list[str] = Field(default_factory=lambda: ["version"])
    name: str = "VERSION"
    pattern: str | None = None
    template: str | None = None

    @model_validator(mode="after")
    def _check_regex_fields(self) -> VersionDeclaration:
        if self.kind == "regex" and (not self.pattern or self.template is None):
            raise ValueError("regex declarations need both 'pattern' and 'template'")
        if self.kind == "json" and not self.key:
            raise ValueError("json declarations need a non-empty 'key' path")
        return self

    def describe(self) -> str:
        """Short description of what this declaration matches, for messages."""
        if self.kind == "json":
            return "json " + ".".join(repr(k) for k in self.key)
        if self.kind == "text":
            return "entire file"
        if self.kind == "constant":
            return f"{self.name} = '<version>'"
        if self.kind == "pyproject":
            return "[project].version"
        return f"regex {self.pattern!r}"


class BumpConfig(BaseModel):
    """Per-project settings loaded from ``.vbump.toml`` or ``[tool.vbump]``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    declarations: list[VersionDeclaration]
    tag_prefix: str = Field("v", alias="tag-prefix")
    message: str = "Bump to v{version}"
    annotate: bool = False
    allow_dirty: bool = Field(False, alias="allow-dirty")


class Rewrite(BaseModel):
    """Records a single declaration change made during a bump.

    Attributes:
        path: File that was rewritten.
        old: The value found before rewriting.
        new: The value written.
    """

    path: str
    old: str
    new: str


class CommitRecord(BaseModel):
    """The commit + tag pair created by a successful bump."""

    model_config = ConfigDict(frozen=True)

    version: str
    sha: str
    tag: str
    message: str
    paths: list[str]
    rewrites: list[Rewrite] = Field(default_factory=list)
