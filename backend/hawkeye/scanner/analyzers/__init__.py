# hawkeye/scanner/analyzers/__init__.py
"""
Analyzers.
Each analyzer applies registry rules to materialized content and produces
Findings. Analyzers do NOT fetch anything; they only inspect what they are given.
"""
from hawkeye.scanner.analyzers.content_scanner import ContentScanner
from hawkeye.scanner.analyzers.dependency_analyzer import DependencyAnalyzer
from hawkeye.scanner.analyzers.policy_auditor import PolicyAuditor

# Fixed merge order for repo scans: dependency, secrets, policy.
REPO_ANALYZER_ORDER = ("dependency", "secrets", "policy")

__all__ = [
    "ContentScanner", "DependencyAnalyzer", "PolicyAuditor",
    "REPO_ANALYZER_ORDER",
]
