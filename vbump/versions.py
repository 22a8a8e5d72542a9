"""Version keyword resolution.

``vbump bump`` takes either a literal version, written verbatim, or one of
the keywords ``major``, ``minor`` and ``patch``, which bump the project's
current version the way ``npm version <keyword>`` does.
"""

from __future__ import annotations

import semver

BUMP_KEYWORDS = ("major", "minor", "patch")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    A leading "v" is ignored. Prerelease/build metadata on a full
    major.minor.patch version is kept.
    """
    version_str = version_str.strip().removeprefix("v")
    core, sep, rest = version_str.partition("-")
    if not sep:
        core, sep, rest = version_str.partition("+")
    parts = core.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts) + sep + rest)


def bump_version(version_str: str, part: str) -> str:
    """Bump one part of a version and return the result as a string.

    Examples:
        ("1.2.3", "patch") → "1.2.4"
        ("1.2.3", "minor") → "1.3.0"
        ("1.2", "major") → "2.0.0"
        ("1.3.0-rc.1", "patch") → "1.3.0"
    """
    version = parse_version(version_str)
    if part == "major":
        return str(version.bump_major())
    if part == "minor":
        return str(version.bump_minor())
    if part == "patch":
        if version.prerelease:
            # 1.3.0-rc.1 → 1.3.0, matching `npm version patch`
            return str(version.finalize_version())
        return str(version.bump_patch())
    raise ValueError(f"unknown version part: {part!r}")


def resolve_version(requested: str, current: str) -> str:
    """Turn a CLI version argument into the literal version to write.

    Keywords are applied to current; anything else is returned unchanged,
    since literal versions are never validated or reformatted.
    """
    if requested in BUMP_KEYWORDS:
        return bump_version(current, requested)
    return requested
