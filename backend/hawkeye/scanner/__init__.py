# hawkeye/scanner/__init__.py
"""
Hawkeye Scanning Engine

Usage:
    from hawkeye.scanner import RuleRegistry, ScanOrchestrator
    from hawkeye.scanner.scan_request import PackageScanRequest

    orchestrator = ScanOrchestrator(RuleRegistry.load(), config)
    report = orchestrator.execute(PackageScanRequest(manifest=text))

Architecture:
    ScanOrchestrator
    ├── RuleRegistry          versioned detectors loaded from JSON
    └── Analyzers (run concurrently for repo scans, merged in this order)
        ├── DependencyAnalyzer  package.json → advisories / freshness floor
        ├── ContentScanner      secret patterns over text
        └── PolicyAuditor       scored checklist over a directory tree
            ├── dependencies
            ├── file_permissions
            ├── network_calls
            ├── code_quality
            └── injection_patterns
"""

from hawkeye.scanner.orchestrator import ScanOrchestrator
from hawkeye.scanner.registry import RuleRegistry

__all__ = ["RuleRegistry", "ScanOrchestrator"]
