# hawkeye/scanner/base.py
"""
Base classes for the Hawkeye scanning engine.

Architecture:
    ScanRequest → ScanOrchestrator → Analyzers → Findings → Report

BaseAnalyzer: Applies registry rules to materialized content (text, a
              manifest, a directory tree) and produces Findings.
              Analyzers never fetch anything over the network.

Finding:      One detector hit. Immutable once created; owned by the Report
              that aggregates it.

Report:       The merged result of one scan. Built once, read-only after.
              summary and overall_severity are always derived from findings,
              never set independently.

ScanContext:  Per-scan state handed to analyzers: the cancellation signal
              and scan identity. Nothing in it is shared between scans.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

from hawkeye.config import ScannerConfig
from hawkeye.errors import InputTooLarge, ScanCancelled
from hawkeye.scanner.registry import Rule, RuleRegistry
from hawkeye.utils.scoring import (
    calc_exposure_score,
    count_by_severity,
    exposure_grade,
    max_severity,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def now_utc() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def redact(secret: str, prefix: int = 8) -> str:
    """
    Short, non-reversible excerpt of a matched secret.

    Never reveals more than half of the match, so even short matches are
    not echoed back whole.
    """
    keep = min(prefix, len(secret) // 2)
    return secret[:keep] + "..."


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Finding:
    """
    A single detector hit.

    Fields:
        rule_id:     Registry rule (or engine-generated id) that fired.
        type:        Human-readable detector name, e.g. "AWS Access Key".
        severity:    One of: info, low, medium, high, critical.
        location:    Where it was found: "offset:120", "src/app.js:offset:120",
                     a package coordinate "lodash@^4.17.0", or a file path.
        excerpt:     Redacted evidence. Secrets are truncated to a short prefix.
        message:     What was found, in one sentence.
        remediation: How to fix it (from the rule), if known.
    """
    rule_id: str
    type: str
    severity: str
    location: str
    excerpt: str = ""
    message: str = ""
    remediation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "type": self.type,
            "severity": self.severity,
            "location": self.location,
            "excerpt": self.excerpt,
            "message": self.message,
            "ruleId": self.rule_id,
        }
        if self.remediation:
            payload["remediation"] = self.remediation
        return payload


@dataclass(frozen=True)
class Report:
    scan_type: str
    target: str
    findings: Tuple[Finding, ...]
    summary: Dict[str, int]
    overall_severity: str
    scanned_at: datetime
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        scan_type: str,
        target: str,
        findings: Iterable[Finding],
        details: Optional[Dict[str, Any]] = None,
        scanned_at: Optional[datetime] = None,
    ) -> "Report":
        """The only way a Report is made: summary and overall severity derive from findings."""
        findings = tuple(findings)
        severities = [f.severity for f in findings]
        return cls(
            scan_type=scan_type,
            target=target,
            findings=findings,
            summary=count_by_severity(severities),
            overall_severity=max_severity(severities),
            scanned_at=scanned_at or now_utc(),
            details=dict(details or {}),
        )

    @property
    def risk_score(self) -> float:
        return calc_exposure_score(**self.summary)

    def to_dict(self) -> Dict[str, Any]:
        grade, _ = exposure_grade(self.risk_score)
        payload: Dict[str, Any] = {
            "scanType": self.scan_type,
            "target": self.target,
            "findings": [f.to_dict() for f in self.findings],
            "summary": dict(self.summary),
            "overallSeverity": self.overall_severity,
            "riskScore": self.risk_score,
            "riskGrade": grade,
            "scannedAt": self.scanned_at.isoformat(),
        }
        for key, value in self.details.items():
            payload.setdefault(key, value)
        return payload


@dataclass
class ScanContext:
    """
    Per-scan state handed to every analyzer call.

    cancel_event is checked between rule evaluations; setting it makes each
    analyzer raise ScanCancelled within one rule-evaluation step.
    """
    scan_type: str = "adhoc"
    target: str = ""
    cancel_event: threading.Event = field(default_factory=threading.Event)
    started_at: datetime = field(default_factory=now_utc)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    def check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ScanCancelled(f"Scan '{self.scan_type}' of {self.target or 'input'} was cancelled")


# ---------------------------------------------------------------------------
# Abstract base class
# ---------------------------------------------------------------------------

class BaseAnalyzer(ABC):
    """
    Abstract base for analyzers.

    To create a new analyzer:
        1. Subclass BaseAnalyzer
        2. Set the `name` property
        3. Consult self.registry for rules, never hardcode detectors
        4. Call ctx.check_cancelled() between rule evaluations

    Analyzers hold only the registry and config, both read-only, so one
    instance can serve concurrent scans.
    """

    def __init__(self, registry: RuleRegistry, config: Optional[ScannerConfig] = None):
        self.registry = registry
        self.config = config or ScannerConfig()

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique analyzer identifier."""
        ...

    def check_size(self, text: str, source: Optional[str] = None) -> int:
        """Byte length of text; raises InputTooLarge past the configured maximum."""
        size = len(text.encode("utf-8"))
        if size > self.config.max_input_length:
            raise InputTooLarge(size, self.config.max_input_length, source=source)
        return size

    def finding_from_rule(
        self,
        rule: Rule,
        location: str,
        *,
        excerpt: str = "",
        message: Optional[str] = None,
    ) -> Finding:
        return Finding(
            rule_id=rule.id,
            type=rule.title,
            severity=rule.severity,
            location=location,
            excerpt=excerpt,
            message=message or f"{rule.title} detected",
            remediation=rule.remediation,
        )
