"""
Declared version range parsing.

Accepts PEP 440 specifier sets plus the shorthand forms people carry over
from other package managers:

    ">=1.2,<2"  -> >=1.2,<2
    "1.2.3"     -> ==1.2.3
    "*", ""     -> any version
    "^1.2.0"    -> >=1.2.0,<2.0.0
    "^0.2.3"    -> >=0.2.3,<0.3.0
    "~1.2.3"    -> >=1.2.3,<1.3.0

Anything else (direct references, paths, URLs) is not a range.
"""

from __future__ import annotations

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

_ANY = {"", "*", "latest"}


def _bump(release: tuple[int, ...], index: int) -> str:
    bumped = list(release[: index + 1])
    bumped[index] += 1
    bumped.extend([0] * (len(release) - len(bumped)))
    return ".".join(str(part) for part in bumped)


def _caret(raw: str) -> str | None:
    try:
        version = Version(raw)
    except InvalidVersion:
        return None
    release = version.release
    # First non-zero component is the one that may not change
    index = next((i for i, part in enumerate(release) if part != 0), len(release) - 1)
    return f">={raw},<{_bump(release, index)}"


def _tilde(raw: str) -> str | None:
    try:
        version = Version(raw)
    except InvalidVersion:
        return None
    release = version.release
    index = 0 if len(release) == 1 else 1
    return f">={raw},<{_bump(release, index)}"


def to_specifier(value: str | None) -> str | None:
    """
    Normalize a declared range to a PEP 440 specifier string.

    Returns:
        The specifier string ("" meaning any version), or None when the
        value is not a version range at all.
    """
    if value is None:
        return ""
    raw = str(value).strip()
    if raw in _ANY:
        return ""

    if raw.startswith("^"):
        spec = _caret(raw[1:].strip())
    elif raw.startswith("~") and not raw.startswith("~="):
        spec = _tilde(raw[1:].strip())
    elif raw[0].isdigit():
        spec = f"=={raw}"
    else:
        spec = raw.replace(" ", "")

    if spec is None:
        return None
    try:
        SpecifierSet(spec)
    except InvalidSpecifier:
        return None
    return spec


def parse_range(value: str | None) -> SpecifierSet | None:
    """SpecifierSet for a declared range, or None when it is not a range."""
    spec = to_specifier(value)
    return None if spec is None else SpecifierSet(spec)


def satisfies(installed_version: str, value: str | None) -> bool | None:
    """
    Check an installed version against a declared range.

    Returns:
        True/False, or None when either side cannot be interpreted.
    """
    specifier = parse_range(value)
    if specifier is None:
        return None
    try:
        version = Version(installed_version)
    except InvalidVersion:
        return None
    return specifier.contains(version, prereleases=True)
