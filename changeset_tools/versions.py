"""Version parsing and caret-range utilities.

Handles conversion between npm version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
"""

from __future__ import annotations

from collections.abc import Collection

import semver

from .models import Release

CARET = "^"


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Prerelease and build metadata on full versions are kept
    ("1.2.0-beta.1" parses as is).
    """
    version_str = version_str.strip().lstrip("v")
    core, sep, rest = version_str.partition("-")
    if not sep:
        core, sep, rest = version_str.partition("+")
    parts = core.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]) + (sep + rest if sep else ""))


def is_prerelease(version_str: str) -> bool:
    """True for versions like "2.0.0-next.3"."""
    return parse_version(version_str).prerelease is not None


def is_caret_range(version_range: str) -> bool:
    """True if the range is a plain caret range such as "^1.2.0".

    Compound ranges ("^1.0.0 || ^2.0.0") are not plain caret ranges even
    though they start with a caret.
    """
    version_range = version_range.strip()
    return version_range.startswith(CARET) and not any(
        token in version_range for token in (" ", "||", ",")
    )


def caret_range(version: str) -> str:
    """Return the caret range anchored at version ("1.1.0" → "^1.1.0")."""
    return f"{CARET}{version}"


def caret_minimum(version_range: str) -> semver.Version:
    """Return the minimum version allowed by a caret range.

    Examples:
        "^1.2.0" → 1.2.0
        "^1.2" → 1.2.0
    """
    return parse_version(version_range.strip()[len(CARET) :])


def satisfies_minimum(version_range: str, version: str) -> bool:
    """True if a caret range already requires at least version.

    Used to keep propagation idempotent: a range already raised to (or past)
    the released version is left alone. Unparseable ranges never satisfy.
    """
    try:
        return caret_minimum(version_range) >= parse_version(version)
    except ValueError:
        return False


def should_propagate(
    release: Release,
    bump_types: Collection[str] = ("minor",),
    include_prereleases: bool = False,
) -> bool:
    """Decide whether a release raises the minimum range of its dependents.

    Only bump types listed in bump_types trigger propagation. Releases to a
    prerelease version ("1.1.0-beta.0") are ignored unless include_prereleases
    is set.
    """
    if release.type not in bump_types:
        return False
    if not include_prereleases and is_prerelease(release.new_version):
        return False
    return True
