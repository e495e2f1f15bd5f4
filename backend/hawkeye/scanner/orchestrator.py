# hawkeye/scanner/orchestrator.py
"""
Scan Orchestrator: entry point of the Hawkeye engine.

Coordinates one scan:

    1. Validate the ScanRequest (InvalidRequest before anything runs)
    2. Look up the handler for the request kind in the dispatch table
    3. Run the analyzer task(s) on a thread pool under the caller's timeout
    4. Merge Finding sequences in fixed analyzer order
    5. Build the Report (summary counts + overall severity)

Usage:
    from hawkeye.scanner import ScanOrchestrator, RuleRegistry

    orchestrator = ScanOrchestrator(RuleRegistry.load(), config)
    report = orchestrator.execute(SecretsScanRequest(code=text), timeout=10)

The orchestrator is stateless between calls: the registry and config are
read-only, and all per-scan state lives in a ScanContext. One instance can
serve concurrent scans.

Failure policy:
    - Malformed input on the analyzer whose input is primary to the request
      (manifest on a package scan, text on a secrets scan) propagates.
    - In repo scans, an unparsable manifest or a skipped policy check
      degrades to findings; the scan still completes.
    - Timeout: the whole call fails with ScanTimeout. No partial report.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Tuple

from hawkeye.config import ScannerConfig
from hawkeye.errors import InputTooLarge, InvalidRequest, ParseError, ScanTimeout
from hawkeye.scanner.analyzers import (
    REPO_ANALYZER_ORDER,
    ContentScanner,
    DependencyAnalyzer,
    PolicyAuditor,
)
from hawkeye.scanner.analyzers.dependency_analyzer import summarize
from hawkeye.scanner.base import Finding, Report, ScanContext
from hawkeye.scanner.checks.dependencies import MANIFEST_NAME
from hawkeye.scanner.registry import RuleRegistry
from hawkeye.scanner.scan_request import (
    CVELookupRequest,
    PackageScanRequest,
    RepoScanRequest,
    ScanRequest,
    SecretsScanRequest,
    SkillAuditRequest,
)
from hawkeye.scanner.tree import SourceTree

logger = logging.getLogger(__name__)

# A task returns its findings plus report details
TaskResult = Tuple[List[Finding], Dict[str, Any]]
Task = Callable[[ScanContext], TaskResult]

_UNSET = object()


class ScanOrchestrator:

    def __init__(self, registry: RuleRegistry, config: Optional[ScannerConfig] = None):
        self.registry = registry
        self.config = config or ScannerConfig()

        self.content_scanner = ContentScanner(registry, self.config)
        self.dependency_analyzer = DependencyAnalyzer(registry, self.config)
        self.policy_auditor = PolicyAuditor(registry, self.config)

        self._dispatch: Dict[str, Callable[[Any], List[Tuple[str, Task]]]] = {
            "repo": self._repo_tasks,
            "package": self._package_tasks,
            "secrets": self._secrets_tasks,
            "skill": self._skill_tasks,
            "cve-lookup": self._cve_tasks,
        }

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------

    def execute(
        self,
        request: ScanRequest,
        timeout: Any = _UNSET,
        cancel_event: Optional[threading.Event] = None,
    ) -> Report:
        """
        Run one scan and return its Report.

        Args:
            request:      A validated-or-not ScanRequest variant.
            timeout:      Seconds for the whole call. Defaults to
                          config.scan_timeout; None disables it; <= 0 fails
                          immediately.
            cancel_event: Optional caller-owned cancellation signal.

        Raises:
            InvalidRequest, ParseError, InputTooLarge, ScanTimeout, ScanCancelled
        """
        kind = getattr(request, "kind", None)
        handler = self._dispatch.get(kind)
        if handler is None:
            raise InvalidRequest(f"Unsupported scan request: {type(request).__name__}")
        request.validate()

        if timeout is _UNSET:
            timeout = self.config.scan_timeout
        if timeout is not None and timeout <= 0:
            raise ScanTimeout(f"Scan '{kind}' of {request.target} exceeded its {timeout}s budget", timeout=timeout)

        ctx = ScanContext(
            scan_type=kind,
            target=request.target,
            cancel_event=cancel_event or threading.Event(),
        )
        tasks = handler(request)

        start = time.monotonic()
        logger.info(f"Scan '{kind}' started for {request.target} ({len(tasks)} analyzer task(s))")
        results = self._run_tasks(tasks, ctx, timeout)

        findings: List[Finding] = []
        details: Dict[str, Any] = {}
        for name, _ in tasks:
            task_findings, task_details = results[name]
            findings.extend(task_findings)
            details.update(task_details)

        report = Report.build(kind, request.target, findings, details=details)
        logger.info(
            f"Scan '{kind}' completed for {request.target} in {round(time.monotonic() - start, 2)}s: "
            f"{len(report.findings)} finding(s), overall {report.overall_severity}"
        )
        return report

    # -------------------------------------------------------------------
    # Task execution
    # -------------------------------------------------------------------

    def _run_tasks(
        self,
        tasks: List[Tuple[str, Task]],
        ctx: ScanContext,
        timeout: Optional[float],
    ) -> Dict[str, TaskResult]:
        """
        Run independent analyzer tasks concurrently and join them.

        Results are keyed by task name; the caller merges them in dispatch
        order, so completion order never affects the report.
        """
        executor = ThreadPoolExecutor(
            max_workers=min(len(tasks), self.config.max_workers),
            thread_name_prefix=f"hawkeye-{ctx.scan_type}",
        )
        try:
            futures = [(name, executor.submit(task, ctx)) for name, task in tasks]
            done, pending = wait([f for _, f in futures], timeout=timeout, return_when=FIRST_EXCEPTION)

            failed = [f for _, f in futures if f in done and f.exception() is not None]
            if failed:
                ctx.cancel()
                raise failed[0].exception()
            if pending:
                ctx.cancel()
                logger.warning(
                    f"Scan '{ctx.scan_type}' of {ctx.target} timed out after {timeout}s; "
                    f"pending: {[name for name, f in futures if f in pending]}"
                )
                raise ScanTimeout(
                    f"Scan '{ctx.scan_type}' of {ctx.target} exceeded its {timeout}s budget",
                    timeout=timeout,
                )

            return {name: future.result() for name, future in futures}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    # -------------------------------------------------------------------
    # Dispatch table entries: request → [(analyzer name, task)]
    # -------------------------------------------------------------------

    def _secrets_tasks(self, request: SecretsScanRequest) -> List[Tuple[str, Task]]:
        def run(ctx: ScanContext) -> TaskResult:
            findings = self.content_scanner.scan(request.code, ctx)
            return findings, {"codeLength": len(request.code)}
        return [("secrets", run)]

    def _package_tasks(self, request: PackageScanRequest) -> List[Tuple[str, Task]]:
        def run(ctx: ScanContext) -> TaskResult:
            result = self.dependency_analyzer.analyze(request.manifest, ctx)
            return result.findings, summarize(result)
        return [("dependency", run)]

    def _cve_tasks(self, request: CVELookupRequest) -> List[Tuple[str, Task]]:
        def run(ctx: ScanContext) -> TaskResult:
            findings = self.dependency_analyzer.lookup(request.package, request.version, ctx)
            return findings, {
                "package": request.package,
                "version": request.version,
                "vulnerabilities": sum(1 for f in findings if f.severity != "info"),
            }
        return [("dependency", run)]

    def _skill_tasks(self, request: SkillAuditRequest) -> List[Tuple[str, Task]]:
        def run(ctx: ScanContext) -> TaskResult:
            outcome = self.policy_auditor.evaluate(self._tree(request.skill_path), ctx)
            return outcome.findings, outcome.details()
        return [("policy", run)]

    def _repo_tasks(self, request: RepoScanRequest) -> List[Tuple[str, Task]]:
        tree = self._tree(request.path)

        def run_dependency(ctx: ScanContext) -> TaskResult:
            try:
                has_manifest = MANIFEST_NAME in tree.files()
            except OSError as e:
                logger.warning(f"Repo scan: cannot list {tree.root}: {e}")
                has_manifest = False
            if not has_manifest:
                return [], {"totalDeps": 0, "vulnerablePackages": 0}
            try:
                result = self.dependency_analyzer.analyze(tree.read_text(MANIFEST_NAME), ctx)
            except (ParseError, InputTooLarge) as e:
                logger.warning(f"Repo scan: {MANIFEST_NAME} in {tree.root} not evaluated: {e.message}")
                return [Finding(
                    rule_id="dependency.manifest-unparsable",
                    type="Unparsable manifest",
                    severity="medium",
                    location=MANIFEST_NAME,
                    message=f"{MANIFEST_NAME} could not be evaluated, dependencies were not checked: {e.message}",
                    remediation="Fix the manifest so it is valid JSON within the scan size limit.",
                )], {"totalDeps": 0, "vulnerablePackages": 0}
            return result.findings, summarize(result)

        def run_secrets(ctx: ScanContext) -> TaskResult:
            try:
                files = tree.text_files()
            except OSError as e:
                logger.warning(f"Repo scan: cannot list {tree.root}: {e}")
                return [], {"filesScanned": 0, "branch": request.branch}
            findings = self.content_scanner.scan_tree(tree, ctx)
            return findings, {"filesScanned": len(files), "branch": request.branch}

        def run_policy(ctx: ScanContext) -> TaskResult:
            # Dependency coverage comes from the dependency task above
            outcome = self.policy_auditor.evaluate(tree, ctx, exclude=("dependencies",))
            return outcome.findings, outcome.details()

        tasks = {
            "dependency": run_dependency,
            "secrets": run_secrets,
            "policy": run_policy,
        }
        return [(name, tasks[name]) for name in REPO_ANALYZER_ORDER]

    def _tree(self, path: str) -> SourceTree:
        return SourceTree(path, ignored_dirs=self.config.ignored_dirs, max_files=self.config.max_files)
