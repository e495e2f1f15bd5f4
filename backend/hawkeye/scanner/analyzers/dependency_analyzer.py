# hawkeye/scanner/analyzers/dependency_analyzer.py
"""
Dependency Analyzer.

Parses a package.json manifest, resolves every declared package against the
registry's advisories, and classifies risk.

Resolution per dependency:
    1. Normalize the range to a concrete minimum version ("^4.17.1" → 4.17.1)
    2. Unparsable version      → `info` "unparsable version" finding, continue
    3. advisory_for(name) hits → one finding per advisory whose affected range
                                 contains the minimum version
    4. No advisory at all      → freshness fallback: `low` "unaudited" finding
                                 when the major version is below the floor

Advisories suppress the fallback: a package the registry knows about is
audited, even when none of its advisories apply to the declared version.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from hawkeye.errors import ParseError
from hawkeye.scanner.base import BaseAnalyzer, Finding, ScanContext
from hawkeye.scanner.registry import Rule
from hawkeye.scanner.versions import Version, format_version, minimum_version, satisfies

logger = logging.getLogger(__name__)

MANIFEST_SECTIONS = ("dependencies", "devDependencies")


@dataclass(frozen=True)
class DependencyDeclaration:
    name: str
    version_range: str
    section: str = "dependencies"

    @property
    def minimum(self) -> Optional[Version]:
        return minimum_version(self.version_range)

    @property
    def coordinate(self) -> str:
        return f"{self.name}@{self.version_range}"


@dataclass
class DependencyScanResult:
    declarations: List[DependencyDeclaration] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)

    @property
    def total_deps(self) -> int:
        return len(self.declarations)

    @property
    def vulnerable_packages(self) -> int:
        return len({f.location for f in self.findings if f.severity != "info"})


def _stricter(current: DependencyDeclaration, candidate: DependencyDeclaration) -> DependencyDeclaration:
    """The declaration with the higher minimum version; the first one wins ties."""
    a, b = current.minimum, candidate.minimum
    if a is None and b is not None:
        return candidate
    if a is not None and b is not None and b > a:
        return candidate
    return current


def parse_manifest(manifest: str) -> List[DependencyDeclaration]:
    """
    Parse manifest text into declarations, runtime and development merged.

    Raises:
        ParseError: manifest is not a JSON object, or a dependency section is
                    not an object of name → version string.
    """
    if manifest is None or not manifest.strip():
        raise ParseError("Manifest is empty")
    try:
        data = json.loads(manifest)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Invalid JSON in manifest: {e.msg} (line {e.lineno} column {e.colno})",
            line=e.lineno,
            column=e.colno,
        ) from e
    if not isinstance(data, dict):
        raise ParseError(f"Manifest must be a JSON object, got {type(data).__name__}")

    merged: Dict[str, DependencyDeclaration] = {}
    for section in MANIFEST_SECTIONS:
        entries = data.get(section)
        if entries is None:
            continue
        if not isinstance(entries, dict):
            raise ParseError(f"Manifest '{section}' must be an object", section=section)

        for name, version_range in entries.items():
            # Non-string versions are kept and reported as unparsable later
            decl = DependencyDeclaration(
                name=str(name),
                version_range=version_range if isinstance(version_range, str) else json.dumps(version_range),
                section=section,
            )
            key = decl.name.lower()
            merged[key] = _stricter(merged[key], decl) if key in merged else decl

    return list(merged.values())


class DependencyAnalyzer(BaseAnalyzer):

    @property
    def name(self) -> str:
        return "dependency"

    def scan(self, manifest: str, ctx: Optional[ScanContext] = None) -> List[Finding]:
        return self.analyze(manifest, ctx).findings

    def analyze(self, manifest: str, ctx: Optional[ScanContext] = None) -> DependencyScanResult:
        ctx = ctx or ScanContext(scan_type="package")
        self.check_size(manifest or "", source="manifest")
        declarations = parse_manifest(manifest)

        result = DependencyScanResult(declarations=declarations)
        for decl in declarations:
            ctx.check_cancelled()
            result.findings.extend(self._evaluate(decl))

        logger.info(
            f"DependencyAnalyzer: {result.total_deps} dependencies, "
            f"{len(result.findings)} finding(s), {result.vulnerable_packages} flagged package(s)"
        )
        return result

    def lookup(self, package: str, version: str, ctx: Optional[ScanContext] = None) -> List[Finding]:
        """
        Advisory lookup for one package at one version (cve-lookup scans).
        Only advisories are consulted; the freshness fallback does not apply.
        """
        ctx = ctx or ScanContext(scan_type="cve-lookup")
        decl = DependencyDeclaration(name=package, version_range=version)
        minimum = decl.minimum
        if minimum is None:
            return [self._unparsable(decl)]
        ctx.check_cancelled()
        return self._advisory_findings(decl, minimum, self.registry.advisory_for(package))

    # ── internals ──────────────────────────────────────────────────

    def _evaluate(self, decl: DependencyDeclaration) -> List[Finding]:
        minimum = decl.minimum
        if minimum is None:
            return [self._unparsable(decl)]

        advisories = self.registry.advisory_for(decl.name)
        if advisories:
            return self._advisory_findings(decl, minimum, advisories)

        if minimum[0] < self.config.freshness_floor:
            return [Finding(
                rule_id="dependency.unaudited",
                type="Unaudited dependency",
                severity="low",
                location=decl.coordinate,
                excerpt=f"{decl.name}@{format_version(minimum)}",
                message=(
                    f"{decl.name} has no advisory data and its major version "
                    f"{minimum[0]} is below the freshness floor of {self.config.freshness_floor}"
                ),
                remediation="Review the package manually or pin a maintained major release.",
            )]
        return []

    def _advisory_findings(self, decl: DependencyDeclaration, minimum: Version, advisories) -> List[Finding]:
        findings: List[Finding] = []
        # frozenset order is arbitrary; sort by rule id for deterministic output
        for rule in sorted(advisories, key=lambda r: r.id):
            if not self._affects(rule, minimum):
                continue
            cve = f" ({rule.cve})" if rule.cve else ""
            findings.append(self.finding_from_rule(
                rule,
                decl.coordinate,
                excerpt=f"{decl.name}@{format_version(minimum)}",
                message=(
                    f"{decl.name} {format_version(minimum)} is affected by {rule.title}{cve}; "
                    f"affected versions: {', '.join(rule.affected) or 'all'}"
                ),
            ))
        return findings

    @staticmethod
    def _affects(rule: Rule, version: Version) -> bool:
        if not rule.ranges:
            return True
        return any(satisfies(version, specifiers) for specifiers in rule.ranges)

    @staticmethod
    def _unparsable(decl: DependencyDeclaration) -> Finding:
        return Finding(
            rule_id="dependency.unparsable-version",
            type="Unparsable version",
            severity="info",
            location=decl.coordinate,
            excerpt=decl.version_range[:40],
            message=f"Version '{decl.version_range}' of {decl.name} could not be parsed; the package was not evaluated",
        )


def summarize(result: DependencyScanResult) -> Dict[str, Any]:
    """Report details for a dependency scan."""
    return {
        "totalDeps": result.total_deps,
        "vulnerablePackages": result.vulnerable_packages,
    }
