"""Semantic-version helpers for project version ranges.

Supports the subset of npm-style ranges that ``codesync.json`` stores:

* ``latest`` / ``*`` / empty -- any version.
* ``^1.2.3`` -- caret ranges (compatible with the left-most non-zero part).
* ``~1.2.3`` -- tilde ranges (patch-level changes).
* ``>=1.2.3``, ``<2.0.0``, ``=1.2.3``, ``1.2.3`` -- comparators.
* Space-separated comparators are AND-ed, ``||`` alternatives are OR-ed.
"""

from __future__ import annotations

import re

LATEST = "latest"

_VERSION_PATTERN = re.compile(
    r"^\s*v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?\s*$"
)
_COMPARATOR_PATTERN = re.compile(r"^(\^|~|>=|<=|>|<|=)?\s*(.+)$")

Version = tuple[int, int, int, str | None]


def parse_version(version: str) -> Version | None:
    """Parse ``MAJOR.MINOR.PATCH[-pre]``; return ``None`` if invalid."""
    match = _VERSION_PATTERN.match(version or "")
    if match is None:
        return None
    major, minor, patch, pre = match.groups()
    return int(major), int(minor), int(patch), pre


def _prerelease_key(pre: str) -> tuple:
    # Numeric identifiers compare numerically and sort before alphanumeric ones.
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in pre.split(".")
    )


def _sort_key(v: Version) -> tuple:
    # A pre-release sorts before its release.
    major, minor, patch, pre = v
    if pre is None:
        return (major, minor, patch, 1, ())
    return (major, minor, patch, 0, _prerelease_key(pre))


def to_caret_range(version: str) -> str | None:
    """Return ``^<version>`` for a valid version, else ``None``."""
    parsed = parse_version(version)
    if parsed is None:
        return None
    major, minor, patch, pre = parsed
    core = f"{major}.{minor}.{patch}"
    return f"^{core}-{pre}" if pre else f"^{core}"


def is_latest(version_range: str | None) -> bool:
    return not version_range or version_range.strip() in (LATEST, "*", "x")


def _caret_upper(v: Version) -> Version:
    major, minor, patch, _ = v
    if major > 0:
        return (major + 1, 0, 0, None)
    if minor > 0:
        return (0, minor + 1, 0, None)
    return (0, 0, patch + 1, None)


def _comparator_target(comparator: str) -> Version | None:
    match = _COMPARATOR_PATTERN.match(comparator)
    return parse_version(match.group(2)) if match else None


def _allows_prerelease(version: Version, comparators: list[str]) -> bool:
    """A pre-release only matches a comparator set that names a pre-release
    of the same ``MAJOR.MINOR.PATCH``."""
    if version[3] is None:
        return True
    for comparator in comparators:
        target = _comparator_target(comparator)
        if (
            target is not None
            and target[3] is not None
            and target[:3] == version[:3]
        ):
            return True
    return False


def _satisfies_comparator(version: Version, comparator: str) -> bool:
    match = _COMPARATOR_PATTERN.match(comparator)
    if match is None:
        return False
    op, target_str = match.groups()
    if target_str in ("*", "x", LATEST):
        return True
    target = parse_version(target_str)
    if target is None:
        return False

    key = _sort_key(version)
    target_key = _sort_key(target)
    match op:
        case "^":
            return target_key <= key < _sort_key(_caret_upper(target))
        case "~":
            upper = (target[0], target[1] + 1, 0, None)
            return target_key <= key < _sort_key(upper)
        case ">=":
            return key >= target_key
        case "<=":
            return key <= target_key
        case ">":
            return key > target_key
        case "<":
            return key < target_key
        case _:
            return key == target_key


def satisfies(version: str, version_range: str | None) -> bool:
    """Return ``True`` if *version* satisfies *version_range*.

    Invalid versions never satisfy a concrete range.  Pre-releases follow
    the npm rule: ``1.2.0-beta`` satisfies ``>=1.2.0-alpha`` but not
    ``>=1.0.0``.
    """
    if is_latest(version_range):
        return True
    parsed = parse_version(version)
    if parsed is None:
        return False

    for alternative in version_range.split("||"):
        comparators = alternative.split()
        if not comparators:
            continue
        if _allows_prerelease(parsed, comparators) and all(
            _satisfies_comparator(parsed, c) for c in comparators
        ):
            return True
    return False
