# hawkeye/scanner/checks/file_permissions.py
"""
File permission check.

Two kinds of file_permissions rules:
    modeMask rules   fire when any masked bit is set in the file mode
                       (world-writable, setuid/setgid)
    path rules       fire when the relative path matches (key material,
                       .env files that should never ship)
"""

from __future__ import annotations

import logging
from typing import List

from hawkeye.scanner.base import Finding, ScanContext
from hawkeye.scanner.checks.base import CheckResult, Evaluate, failing, rule_finding
from hawkeye.scanner.registry import RuleRegistry
from hawkeye.scanner.tree import SourceTree

logger = logging.getLogger(__name__)

CHECK_NAME = "file_permissions"


def file_permission_check(registry: RuleRegistry) -> Evaluate:
    def evaluate(tree: SourceTree, ctx: ScanContext) -> CheckResult:
        rules = registry.policy_rules(CHECK_NAME)
        mode_rules = [r for r in rules if r.mode_mask is not None]
        path_rules = [r for r in rules if r.regex is not None and r.target == "path"]

        findings: List[Finding] = []
        files = tree.files()
        for rel in files:
            ctx.check_cancelled()
            if mode_rules:
                mode = tree.mode(rel)
                for rule in mode_rules:
                    if mode & rule.mode_mask:
                        findings.append(rule_finding(
                            rule,
                            rel,
                            excerpt=oct(mode & 0o7777),
                            message=f"{rule.title}: {rel} has mode {oct(mode & 0o7777)}",
                        ))
            for rule in path_rules:
                if rule.regex.search(rel):
                    findings.append(rule_finding(rule, rel, excerpt=rel.rsplit("/", 1)[-1]))

        failed = failing(findings)
        if failed:
            return CheckResult(
                passed=False,
                detail=f"{len(failed)} permission issue(s) across {len({f.location for f in failed})} file(s)",
                findings=findings,
            )
        return CheckResult(
            passed=True,
            detail=f"Files have appropriate permissions ({len(files)} checked)",
            findings=findings,
        )

    return evaluate
