# hawkeye/scanner/checks/dependencies.py
"""
Dependency check: runs the Dependency Analyzer over the tree's package.json.

No manifest passes (nothing declared, nothing to audit). A malformed manifest
raises ParseError, which the auditor records as a skipped check.
"""

from __future__ import annotations

from hawkeye.scanner.analyzers.dependency_analyzer import DependencyAnalyzer
from hawkeye.scanner.base import ScanContext
from hawkeye.scanner.checks.base import CheckResult, Evaluate, failing
from hawkeye.scanner.tree import SourceTree

MANIFEST_NAME = "package.json"


def dependency_check(analyzer: DependencyAnalyzer) -> Evaluate:
    def evaluate(tree: SourceTree, ctx: ScanContext) -> CheckResult:
        if MANIFEST_NAME not in tree.files():
            return CheckResult(passed=True, detail="No dependency manifest found")

        result = analyzer.analyze(tree.read_text(MANIFEST_NAME), ctx)
        flagged = failing(result.findings)
        if flagged:
            names = sorted({f.location.rsplit("@", 1)[0] for f in flagged})
            return CheckResult(
                passed=False,
                detail=f"{len(names)} of {result.total_deps} dependencies flagged: {', '.join(names)}",
                findings=result.findings,
            )
        return CheckResult(
            passed=True,
            detail=f"No vulnerable or unaudited packages among {result.total_deps} dependencies",
            findings=result.findings,
        )

    return evaluate
