# File: hawkeye/utils/scoring.py
# =============================================================================
# Severity ordering and score calculators
# =============================================================================
# Single source of truth for severity comparison and report scores.
# Used by: scanner/base (Report), analyzers/policy_auditor, scan/routes.
#
# Severity scale (ascending): info < low < medium < high < critical.
# "none" is only ever an overall severity, never a finding severity.
# =============================================================================

from __future__ import annotations

import math
from typing import Dict, Iterable, Mapping, Sequence

SEVERITY_LEVELS = ("info", "low", "medium", "high", "critical")
SEVERITY_NONE = "none"

_RANK = {name: i for i, name in enumerate(SEVERITY_LEVELS)}


def is_severity(value: str) -> bool:
    return value in _RANK


def severity_rank(severity: str) -> int:
    """Rank of a severity (info=0 .. critical=4). Unknown values raise KeyError."""
    return _RANK[severity]


def max_severity(severities: Iterable[str]) -> str:
    """Highest severity in the iterable, or "none" when it is empty."""
    best = None
    for sev in severities:
        if best is None or _RANK[sev] > _RANK[best]:
            best = sev
    return best or SEVERITY_NONE


def count_by_severity(severities: Iterable[str]) -> Dict[str, int]:
    """
    Count severities, highest first. Every level is present, zero or not,
    so the mapping always has the same keys in the same order.
    """
    counts = {sev: 0 for sev in reversed(SEVERITY_LEVELS)}
    for sev in severities:
        counts[sev] += 1
    return counts


def audit_score(
    check_names: Sequence[str],
    failed: Iterable[str],
    weights: Mapping[str, float] | None = None,
) -> float:
    """
    100 minus the penalty of every failed check, floored at 0.

    Checks without an explicit weight share the remainder equally: with the
    default of no weights, five checks cost 20 points each.
    """
    weights = dict(weights or {})
    names = list(check_names)
    if not names:
        return 100.0

    explicit = {n: float(weights[n]) for n in names if n in weights}
    implicit = [n for n in names if n not in explicit]
    remainder = max(0.0, 100.0 - sum(explicit.values()))
    share = remainder / len(implicit) if implicit else 0.0

    penalty = 0.0
    for name in set(failed):
        if name in explicit:
            penalty += explicit[name]
        elif name in names:
            penalty += share

    return round(max(0.0, 100.0 - penalty), 1)


def calc_exposure_score(
    critical: int = 0,
    high: int = 0,
    medium: int = 0,
    low: int = 0,
    info: int = 0,
) -> float:
    """
    Calculate an exposure score from 0–100 based on finding severity counts.

    Tier breakdown (with caps to prevent any single tier from dominating):
      - Critical: 15 pts each, max 40 pts
      - High:      4 pts each, max 30 pts
      - Medium:    sqrt(n) × 5, max 20 pts
      - Low:       sqrt(n) × 2, max 10 pts
      - Info:      0 pts
    """
    c_score = min(40.0, critical * 15.0)
    h_score = min(30.0, high * 4.0)
    m_score = min(20.0, math.sqrt(max(medium, 0)) * 5.0)
    l_score = min(10.0, math.sqrt(max(low, 0)) * 2.0)

    raw = c_score + h_score + m_score + l_score
    return round(min(100.0, raw), 1)


def exposure_grade(score: float) -> tuple[str, str]:
    """
    Convert a numeric exposure score to a letter grade and description.
    Returns: (grade, description)
    """
    if score < 15:
        return "A", "Excellent: minimal exposure"
    elif score < 30:
        return "B", "Good: low-severity findings only"
    elif score < 50:
        return "C", "Moderate: some concerning findings"
    elif score < 70:
        return "D", "Significant: high-severity findings present"
    else:
        return "F", "Critical: immediate remediation required"
