# hawkeye/scanner/checks/base.py
"""
Policy check building blocks.

A check is a named strategy: a PolicyCheck pairs a name with an `evaluate`
callable that takes the materialized tree and the scan context and returns a
CheckResult. Checks are built as closures over the registry and config, so
adding one means appending to the checklist, not subclassing anything.

    check = PolicyCheck("network_calls", evaluate=pattern_check(registry, "network_calls", ...))
    result = check.evaluate(tree, ctx)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from hawkeye.scanner.base import Finding, ScanContext, redact
from hawkeye.scanner.registry import KIND_SECRET, Rule, RuleRegistry
from hawkeye.scanner.tree import SourceTree
from hawkeye.utils.scoring import severity_rank

logger = logging.getLogger(__name__)

# Findings at or above this severity fail a check; info findings never do.
FAIL_THRESHOLD = "low"

EXCERPT_LIMIT = 80


@dataclass
class CheckResult:
    passed: bool
    detail: str
    findings: List[Finding] = field(default_factory=list)
    skipped: bool = False

    def to_dict(self) -> dict:
        payload = {"pass": self.passed, "details": self.detail, "findings": len(self.findings)}
        if self.skipped:
            payload["skipped"] = True
        return payload


Evaluate = Callable[[SourceTree, ScanContext], CheckResult]


@dataclass(frozen=True)
class PolicyCheck:
    name: str
    evaluate: Evaluate
    description: str = ""


def failing(findings: List[Finding]) -> List[Finding]:
    threshold = severity_rank(FAIL_THRESHOLD)
    return [f for f in findings if severity_rank(f.severity) >= threshold]


def rule_finding(rule: Rule, location: str, excerpt: str = "", message: Optional[str] = None) -> Finding:
    return Finding(
        rule_id=rule.id,
        type=rule.title,
        severity=rule.severity,
        location=location,
        excerpt=excerpt,
        message=message or f"{rule.title} in {location}",
        remediation=rule.remediation,
    )


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def secret_spans(text: str, registry: RuleRegistry) -> List[Tuple[int, int]]:
    """(start, end) of every secret-rule match in text, sorted by start."""
    return sorted(
        (m.start(), m.end())
        for rule in registry.rules_of(KIND_SECRET)
        for m in rule.regex.finditer(text)
    )


def masked_excerpt(
    text: str,
    start: int,
    end: int,
    spans: List[Tuple[int, int]],
    prefix: int = 8,
) -> str:
    """
    text[start:end] with every overlapping secret span redacted, capped at
    EXCERPT_LIMIT. Secrets that straddle the window edge are redacted too.
    """
    pieces: List[str] = []
    pos = start
    for s, e in spans:
        if e <= pos or s >= end:
            continue
        s = max(s, pos)
        e = min(e, end)
        pieces.append(text[pos:s])
        pieces.append(redact(text[s:e], prefix))
        pos = e
    pieces.append(text[pos:end])
    return "".join(pieces)[:EXCERPT_LIMIT]


def unscanned_finding(check_name: str, rel: str, size: int, limit: int) -> Finding:
    return Finding(
        rule_id=f"{check_name}.file-too-large",
        type="File not scanned",
        severity="medium",
        location=rel,
        message=f"File is {size} bytes, over the {limit}-byte scan limit; it was not inspected for {check_name}",
        remediation="Raise the scan limit or review this file manually.",
    )


def pattern_check(
    registry: RuleRegistry,
    check_name: str,
    *,
    max_input_length: int,
    pass_detail: str,
    fail_detail: str,
    excerpt_prefix: int = 8,
) -> Evaluate:
    """
    Build an evaluate() that runs every content-pattern rule of one check
    group over each text file of the tree.

    The check passes when nothing at or above FAIL_THRESHOLD matched and
    every file was inspected. A file over max_input_length is not read; it
    yields a `medium` "File not scanned" finding and fails the check.
    Excerpts never carry a secret: any secret-rule match inside the window
    is redacted. fail_detail may reference {count} and {files}.
    """
    unscanned_id = f"{check_name}.file-too-large"

    def evaluate(tree: SourceTree, ctx: ScanContext) -> CheckResult:
        rules = [r for r in registry.policy_rules(check_name) if r.regex is not None and r.target == "content"]
        findings: List[Finding] = []

        for rel in tree.text_files():
            ctx.check_cancelled()
            size = tree.size(rel)
            if size > max_input_length:
                logger.warning(f"Policy check '{check_name}': skipping {rel} ({size} bytes)")
                findings.append(unscanned_finding(check_name, rel, size, max_input_length))
                continue

            text = tree.read_text(rel)
            spans: Optional[List[Tuple[int, int]]] = None
            for rule in rules:
                ctx.check_cancelled()
                for match in rule.regex.finditer(text):
                    if spans is None:
                        spans = secret_spans(text, registry)
                    findings.append(rule_finding(
                        rule,
                        f"{rel}:{_line_of(text, match.start())}",
                        excerpt=masked_excerpt(text, match.start(), match.end(), spans, excerpt_prefix),
                    ))

        failed = failing(findings)
        hits = [f for f in failed if f.rule_id != unscanned_id]
        oversized = len(failed) - len(hits)
        if hits:
            detail = fail_detail.format(
                count=len(hits),
                files=len({f.location.rsplit(":", 1)[0] for f in hits}),
            )
        else:
            detail = pass_detail
        if oversized:
            detail += f" ({oversized} oversized file(s) not inspected)"

        return CheckResult(passed=not failed, detail=detail, findings=findings)

    return evaluate
