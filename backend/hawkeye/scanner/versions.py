# hawkeye/scanner/versions.py
"""
Version-range helpers for dependency manifests and advisories.

Manifest ranges (npm style) are reduced to a concrete minimum version by
stripping range operators and taking the leading numeric component:

    "^4.17.1"        → (4, 17, 1)
    "~1.2"           → (1, 2, 0)
    ">=2.0.0 <3"     → (2, 0, 0)
    "1.x || 2.x"     → (1, 0, 0)
    "v3.1.4"         → (3, 1, 4)
    "latest", "*"    → None   (unparsable)

Advisory ranges are npm comparator lists ("<4.17.21", ">=1.0.0 <1.6.0",
"=3.3.6"), compiled to packaging SpecifierSets when the registry loads.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version as ReleaseVersion

Version = Tuple[int, int, int]

_LEADING_NUMERIC = re.compile(r"^(\d+)(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?")
_RANGE_PREFIX = re.compile(r"^(?:[\^~]>?|>=|<=|==|=|>|<|v)+", re.IGNORECASE)
_COMPARATOR = re.compile(r"^(<=|>=|==|=|<|>)?\s*v?(\d+(?:\.\d+){0,2})$")


def parse_version(raw: str) -> Optional[Version]:
    """Parse the leading numeric component of a bare version string."""
    m = _LEADING_NUMERIC.match((raw or "").strip())
    if not m:
        return None
    parts = [m.group(1), m.group(2), m.group(3)]
    return tuple(int(p) if p and p.isdigit() else 0 for p in parts)  # type: ignore[return-value]


def minimum_version(version_range: str) -> Optional[Version]:
    """
    Normalize a manifest version range to its concrete minimum version.
    Returns None when nothing numeric can be recovered.
    """
    text = (version_range or "").strip()
    if not text:
        return None

    # First alternative of "a || b", first comparator of "a b" / "a - b"
    text = text.split("||", 1)[0].strip()
    text = text.split(" - ", 1)[0].strip()
    text = _RANGE_PREFIX.sub("", text).strip()
    text = text.split()[0] if text else ""
    return parse_version(text)


def format_version(version: Version) -> str:
    return ".".join(str(p) for p in version)


def parse_range(expr: str) -> SpecifierSet:
    """
    Convert an advisory range into a SpecifierSet.

    Advisories use npm comparator syntax ("<4.17.21", ">=0.8.1 <1.6.0",
    "=3.3.6", "3.3.6"); a bare or "=" version becomes "==".
    Raises InvalidSpecifier when any comparator is malformed.
    """
    tokens = [t for t in re.split(r"[\s,]+", (expr or "").strip()) if t]
    if not tokens:
        raise InvalidSpecifier(f"Empty version range: {expr!r}")

    specifiers = []
    for token in tokens:
        m = _COMPARATOR.match(token)
        op, value = (m.group(1) or "=", m.group(2)) if m else ("", token)
        specifiers.append(f"{'==' if op == '=' else op}{value}")
    return SpecifierSet(",".join(specifiers))


def satisfies(version: Version, specifiers: SpecifierSet) -> bool:
    """True when version falls inside every comparator of the range."""
    return ReleaseVersion(format_version(version)) in specifiers
