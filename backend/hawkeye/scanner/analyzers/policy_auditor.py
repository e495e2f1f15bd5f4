# hawkeye/scanner/analyzers/policy_auditor.py
"""
Policy Auditor.

Runs a fixed, ordered checklist of named checks over a materialized
directory tree and produces a scored report.

    score = 100 - Σ weight(failed check)        (floored at 0)

Weights come from config.audit_weights; checks without an explicit weight
share the rest of the 100 points equally.

A check that raises is recorded as failed with a `high` "check skipped"
finding, and the remaining checks still run: a partial audit still yields a
usable report. Cancellation is the one exception and always propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from hawkeye.errors import ScanCancelled
from hawkeye.scanner import checks as policy_checks
from hawkeye.scanner.base import BaseAnalyzer, Finding, Report, ScanContext
from hawkeye.scanner.tree import SourceTree
from hawkeye.utils.scoring import audit_score

logger = logging.getLogger(__name__)


@dataclass
class AuditOutcome:
    checks: Dict[str, "policy_checks.CheckResult"] = field(default_factory=dict)
    findings: List[Finding] = field(default_factory=list)
    score: float = 100.0

    def details(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "checks": {name: result.to_dict() for name, result in self.checks.items()},
        }


class PolicyAuditor(BaseAnalyzer):

    def __init__(self, registry, config=None, checks: Optional[Sequence["policy_checks.PolicyCheck"]] = None):
        super().__init__(registry, config)
        self.checks = list(checks) if checks is not None else policy_checks.build_default_checks(
            self.registry, self.config
        )

    @property
    def name(self) -> str:
        return "policy"

    def audit(self, target: Union[str, SourceTree], ctx: Optional[ScanContext] = None) -> Report:
        """Audit a directory tree and return a skill-audit Report."""
        tree = self._tree(target)
        ctx = ctx or ScanContext(scan_type="skill", target=tree.root)
        outcome = self.evaluate(tree, ctx)
        label = target if isinstance(target, str) else tree.root
        return Report.build("skill", label, outcome.findings, details=outcome.details())

    def evaluate(
        self,
        tree: SourceTree,
        ctx: ScanContext,
        *,
        exclude: Sequence[str] = (),
    ) -> AuditOutcome:
        """
        Run every check (except `exclude`) in checklist order.

        Excluded checks neither run nor count toward the score.
        """
        selected = [c for c in self.checks if c.name not in exclude]
        outcome = AuditOutcome()

        for check in selected:
            ctx.check_cancelled()
            try:
                result = check.evaluate(tree, ctx)
            except ScanCancelled:
                raise
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
                logger.warning(f"Policy check '{check.name}' skipped for {tree.root}: {reason}")
                result = policy_checks.CheckResult(
                    passed=False,
                    detail=f"check skipped: {reason}",
                    skipped=True,
                    findings=[Finding(
                        rule_id=f"policy.check-skipped.{check.name}",
                        type="Check skipped",
                        severity="high",
                        location=tree.root,
                        message=f"check skipped: {reason}",
                        remediation="Make the target readable and re-run the audit.",
                    )],
                )

            outcome.checks[check.name] = result
            outcome.findings.extend(result.findings)

        outcome.score = audit_score(
            [c.name for c in selected],
            [name for name, r in outcome.checks.items() if not r.passed],
            self.config.audit_weights,
        )
        logger.info(
            f"PolicyAuditor: {tree.root} scored {outcome.score} "
            f"({sum(1 for r in outcome.checks.values() if r.passed)}/{len(outcome.checks)} checks passed)"
        )
        return outcome

    def _tree(self, target: Union[str, SourceTree]) -> SourceTree:
        if isinstance(target, SourceTree):
            return target
        return SourceTree(target, ignored_dirs=self.config.ignored_dirs, max_files=self.config.max_files)
