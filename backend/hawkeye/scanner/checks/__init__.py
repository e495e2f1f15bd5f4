# hawkeye/scanner/checks/__init__.py
"""
Policy checklist.

build_default_checks() returns the fixed, ordered checklist the Policy
Auditor runs. ORDER MATTERS: reports list checks in this order.
"""

from __future__ import annotations

from typing import List

from hawkeye.config import ScannerConfig
from hawkeye.scanner.analyzers.dependency_analyzer import DependencyAnalyzer
from hawkeye.scanner.checks.base import CheckResult, PolicyCheck, pattern_check
from hawkeye.scanner.checks.dependencies import dependency_check
from hawkeye.scanner.checks.file_permissions import file_permission_check
from hawkeye.scanner.registry import RuleRegistry

CHECK_ORDER = (
    "dependencies",
    "file_permissions",
    "network_calls",
    "code_quality",
    "injection_patterns",
)


def build_default_checks(registry: RuleRegistry, config: ScannerConfig) -> List[PolicyCheck]:
    return [
        PolicyCheck(
            "dependencies",
            dependency_check(DependencyAnalyzer(registry, config)),
            "Known-vulnerable, malicious or unaudited packages in package.json",
        ),
        PolicyCheck(
            "file_permissions",
            file_permission_check(registry),
            "World-writable or setuid files, shipped keys and .env files",
        ),
        PolicyCheck(
            "network_calls",
            pattern_check(
                registry, "network_calls",
                max_input_length=config.max_input_length,
                excerpt_prefix=config.excerpt_prefix,
                pass_detail="No suspicious outbound connections",
                fail_detail="{count} suspicious network pattern(s) in {files} file(s)",
            ),
            "Raw IP endpoints, pipe-to-shell, request-capture services, raw sockets",
        ),
        PolicyCheck(
            "code_quality",
            pattern_check(
                registry, "code_quality",
                max_input_length=config.max_input_length,
                excerpt_prefix=config.excerpt_prefix,
                pass_detail="No obfuscation or debugging leftovers",
                fail_detail="{count} code-quality issue(s) in {files} file(s)",
            ),
            "Encoded blobs, minified sources, debugger statements",
        ),
        PolicyCheck(
            "injection_patterns",
            pattern_check(
                registry, "injection_patterns",
                max_input_length=config.max_input_length,
                excerpt_prefix=config.excerpt_prefix,
                pass_detail="No injection vulnerabilities found",
                fail_detail="{count} injection pattern(s) in {files} file(s)",
            ),
            "eval, Function constructor, interpolated shell commands, SQL concatenation",
        ),
    ]


__all__ = ["CHECK_ORDER", "CheckResult", "PolicyCheck", "build_default_checks"]
