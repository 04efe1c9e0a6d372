"""Version ordering and update classification for pub packages.

pub orders versions like SemVer 2.0.0 with one difference: build metadata
(the part after ``+``) takes part in ordering.  ``1.2.3+2`` is a newer
release than ``1.2.3+1``, and both are newer than ``1.2.3``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class UpdateType(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"


_LOOSE_PREFIX_RE = re.compile(r"^[=v\s]+")
_IDENT = r"[0-9A-Za-z-]+"
_VERSION_RE = re.compile(
    r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    rf"(?:-(?P<prerelease>{_IDENT}(?:\.{_IDENT})*))?"
    rf"(?:\+(?P<build>{_IDENT}(?:\.{_IDENT})*))?$"
)


@dataclass(frozen=True)
class PubVersion:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    @property
    def core(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def normalize_version(raw: str) -> PubVersion | None:
    """Parse *raw* leniently, returning ``None`` when it is not a version.

    Surrounding whitespace and leading ``=``/``v`` characters are ignored.
    """
    m = _VERSION_RE.match(_LOOSE_PREFIX_RE.sub("", raw.strip()))
    if m is None:
        return None
    prerelease = m.group("prerelease")
    build = m.group("build")
    return PubVersion(
        major=int(m.group("major")),
        minor=int(m.group("minor")),
        patch=int(m.group("patch")),
        prerelease=tuple(prerelease.split(".")) if prerelease else (),
        build=tuple(build.split(".")) if build else (),
    )


def compare_pub_versions(a: str, b: str) -> int:
    """Compare two version strings under pub ordering; returns -1, 0 or 1.

    If only one side is a valid version it sorts higher; two invalid
    versions compare equal.
    """
    va = normalize_version(a)
    vb = normalize_version(b)
    if va is None or vb is None:
        if va is not None:
            return 1
        if vb is not None:
            return -1
        return 0
    return _compare_parsed(va, vb)


def is_outdated(current: str, latest: str) -> bool:
    """True when *latest* sorts after *current*."""
    return compare_pub_versions(latest, current) > 0


def classify(current: str, latest: str) -> UpdateType:
    """Name the most significant component that differs between two versions."""
    cur = normalize_version(current)
    lat = normalize_version(latest)
    if cur is None or lat is None:
        return UpdateType.NONE

    if _compare_parsed(cur, lat) == 0:
        return UpdateType.NONE

    if cur.major != lat.major:
        return UpdateType.MAJOR
    if cur.minor != lat.minor:
        return UpdateType.MINOR
    # Same core with a different patch, prerelease or build.
    return UpdateType.PATCH


def _compare_parsed(a: PubVersion, b: PubVersion) -> int:
    if a.core != b.core:
        return _sign(a.core, b.core)

    # A release sorts after every prerelease of the same core.
    if a.prerelease != b.prerelease:
        if not a.prerelease:
            return 1
        if not b.prerelease:
            return -1
        return _compare_identifiers(a.prerelease, b.prerelease)

    # pub-specific: having build metadata sorts after having none.
    if not a.build and not b.build:
        return 0
    if not a.build:
        return -1
    if not b.build:
        return 1
    return _compare_identifiers(a.build, b.build)


def _compare_identifiers(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    for left, right in zip(a, b):
        diff = _compare_identifier(left, right)
        if diff != 0:
            return diff
    return _sign(len(a), len(b))


def _compare_identifier(a: str, b: str) -> int:
    a_num = a.isdigit()
    b_num = b.isdigit()
    if a_num and b_num:
        return _sign(int(a), int(b))
    if a_num != b_num:
        # numeric identifiers have lower precedence
        return -1 if a_num else 1
    return _sign(a, b)


def _sign(a, b) -> int:
    return (a > b) - (a < b)
