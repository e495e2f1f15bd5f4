# hawkeye/scanner/registry.py
"""
Rule Registry.

Canonical source of truth for every detector the engine can run. Rules are
data, not code: secret patterns, dependency advisories and policy checks are
loaded from a versioned JSON document, so adding a detector never touches
analyzer logic.

Document shape:

    {
      "schemaVersion": 1,
      "version": "2026.10.0",
      "rules": [
        {"id": "SECRET-AWS-ACCESS-KEY", "kind": "secret",
         "title": "AWS Access Key", "severity": "critical",
         "pattern": "AKIA[0-9A-Z]{16}", "remediation": "..."},
        {"id": "ADV-LODASH-2021-23337", "kind": "dependency-advisory",
         "title": "Command injection in lodash template",
         "package": "lodash", "affected": ["<4.17.21"],
         "cve": "CVE-2021-23337", "severity": "high"},
        {"id": "POLICY-NET-RAW-IP-URL", "kind": "policy-check",
         "check": "network_calls", "pattern": "https?://\\d+\\.\\d+...",
         "severity": "high"}
      ]
    }

Used by:
    - ContentScanner:      rules_of("secret")
    - DependencyAnalyzer:  advisory_for(package)
    - PolicyAuditor:       policy_rules(check_name)

A RuleRegistry is immutable after load and is shared read-only across
concurrently running scans, so it needs no locking.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from packaging.specifiers import InvalidSpecifier, SpecifierSet

from hawkeye.errors import IncompatibleSchema, LoadError
from hawkeye.scanner.versions import parse_range
from hawkeye.utils.scoring import SEVERITY_LEVELS, is_severity

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS = frozenset({1})

KIND_SECRET = "secret"
KIND_ADVISORY = "dependency-advisory"
KIND_POLICY = "policy-check"
RULE_KINDS = (KIND_SECRET, KIND_ADVISORY, KIND_POLICY)

DEFAULT_RULES_PATH = os.path.join(os.path.dirname(__file__), "rules", "default_rules.json")


@dataclass(frozen=True)
class Rule:
    id: str
    kind: str                        # secret, dependency-advisory, policy-check
    title: str
    severity: str                    # info, low, medium, high, critical
    remediation: Optional[str] = None

    # Secret / policy-check predicate
    pattern: Optional[str] = None
    check: Optional[str] = None      # policy-check group, e.g. "network_calls"
    mode_mask: Optional[int] = None  # policy-check on file permission bits
    target: str = "content"          # policy-check: match "content" or "path"

    # Dependency advisories
    package: Optional[str] = None
    affected: Tuple[str, ...] = ()
    cve: Optional[str] = None

    regex: Optional["re.Pattern[str]"] = field(default=None, compare=False, repr=False)
    ranges: Tuple[SpecifierSet, ...] = field(default=(), compare=False, repr=False)


# ═══════════════════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════════════════

def _require_str(raw: Mapping[str, Any], key: str, rule_ref: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise LoadError(f"Rule {rule_ref}: '{key}' must be a non-empty string")
    return value


def _parse_rule(raw: Any, index: int) -> Rule:
    if not isinstance(raw, dict):
        raise LoadError(f"Rule #{index} must be an object, got {type(raw).__name__}")

    rule_id = _require_str(raw, "id", f"#{index}")
    kind = _require_str(raw, "kind", rule_id)
    if kind not in RULE_KINDS:
        raise LoadError(f"Rule {rule_id}: unknown kind '{kind}' (expected one of {', '.join(RULE_KINDS)})")

    severity = _require_str(raw, "severity", rule_id)
    if not is_severity(severity):
        raise LoadError(
            f"Rule {rule_id}: unknown severity '{severity}' "
            f"(expected one of {', '.join(SEVERITY_LEVELS)})"
        )

    title = raw.get("title") or raw.get("name") or rule_id
    remediation = raw.get("remediation")
    pattern = raw.get("pattern")
    regex = None
    if pattern is not None:
        if not isinstance(pattern, str) or not pattern:
            raise LoadError(f"Rule {rule_id}: 'pattern' must be a non-empty string")
        flags = re.IGNORECASE if raw.get("ignoreCase") else 0
        try:
            regex = re.compile(pattern, flags | re.MULTILINE)
        except re.error as e:
            raise LoadError(f"Rule {rule_id}: invalid pattern: {e}") from e

    mode_mask = raw.get("modeMask")
    if mode_mask is not None:
        try:
            mode_mask = int(mode_mask, 8) if isinstance(mode_mask, str) else int(mode_mask)
        except (TypeError, ValueError) as e:
            raise LoadError(f"Rule {rule_id}: invalid modeMask {raw.get('modeMask')!r}") from e

    if kind == KIND_SECRET and regex is None:
        raise LoadError(f"Rule {rule_id}: secret rules require a 'pattern'")

    check = None
    target = raw.get("target", "content")
    if kind == KIND_POLICY:
        check = _require_str(raw, "check", rule_id)
        if regex is None and mode_mask is None:
            raise LoadError(f"Rule {rule_id}: policy checks require a 'pattern' or 'modeMask'")
        if target not in ("content", "path"):
            raise LoadError(f"Rule {rule_id}: 'target' must be 'content' or 'path'")

    package = None
    affected: Tuple[str, ...] = ()
    ranges: Tuple[SpecifierSet, ...] = ()
    if kind == KIND_ADVISORY:
        package = _require_str(raw, "package", rule_id).strip().lower()
        raw_affected = raw.get("affected", [])
        if isinstance(raw_affected, str):
            raw_affected = [raw_affected]
        if not isinstance(raw_affected, list):
            raise LoadError(f"Rule {rule_id}: 'affected' must be a list of version ranges")
        for expr in raw_affected:
            if not isinstance(expr, str) or not expr.strip():
                raise LoadError(f"Rule {rule_id}: affected range {expr!r} must be a non-empty string")
        try:
            ranges = tuple(parse_range(expr) for expr in raw_affected)
        except InvalidSpecifier as e:
            raise LoadError(f"Rule {rule_id}: {e}") from e
        affected = tuple(raw_affected)

    return Rule(
        id=rule_id,
        kind=kind,
        title=title,
        severity=severity,
        remediation=remediation,
        pattern=pattern,
        check=check,
        mode_mask=mode_mask,
        target=target,
        package=package,
        affected=affected,
        cve=raw.get("cve"),
        regex=regex,
        ranges=ranges,
    )


# ═══════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

class RuleRegistry:
    """
    Immutable, ordered collection of Rules.

    Typical usage:
        registry = RuleRegistry.load("rules.json")
        for rule in registry.rules_of("secret"):
            ...
        advisories = registry.advisory_for("lodash")
    """

    def __init__(self, rules: List[Rule], *, schema_version: int, version: Optional[str] = None):
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self.schema_version = schema_version
        self.version = version

        by_kind: Dict[str, List[Rule]] = {kind: [] for kind in RULE_KINDS}
        by_package: Dict[str, List[Rule]] = {}
        by_check: Dict[str, List[Rule]] = {}
        for rule in self._rules:
            by_kind[rule.kind].append(rule)
            if rule.package:
                by_package.setdefault(rule.package, []).append(rule)
            if rule.check:
                by_check.setdefault(rule.check, []).append(rule)

        self._by_kind = MappingProxyType({k: tuple(v) for k, v in by_kind.items()})
        self._by_package = MappingProxyType({k: frozenset(v) for k, v in by_package.items()})
        self._by_check = MappingProxyType({k: tuple(v) for k, v in by_check.items()})
        self._by_id = MappingProxyType({r.id: r for r in self._rules})

    # ── Loading ────────────────────────────────────────────────────

    @classmethod
    def load(
        cls,
        source: Union[str, "os.PathLike[str]", Mapping[str, Any], None] = None,
        *,
        expected_version: Optional[str] = None,
    ) -> "RuleRegistry":
        """
        Load a registry from a JSON file path or an already-parsed mapping.
        With no source, the bundled default rules are loaded.

        Raises:
            LoadError:          malformed rule data
            IncompatibleSchema: schemaVersion not supported, or the document
                                version does not match expected_version
        """
        if source is None:
            source = DEFAULT_RULES_PATH

        if isinstance(source, Mapping):
            document = source
            origin = "<mapping>"
        else:
            origin = os.fspath(source)
            try:
                with open(origin, "r", encoding="utf-8") as fh:
                    document = json.load(fh)
            except OSError as e:
                raise LoadError(f"Cannot read rule file {origin}: {e}") from e
            except json.JSONDecodeError as e:
                raise LoadError(
                    f"Invalid JSON in {origin}: {e.msg} (line {e.lineno} column {e.colno})"
                ) from e

        if not isinstance(document, Mapping):
            raise LoadError(f"Rule document {origin} must be a JSON object")

        schema_version = document.get("schemaVersion")
        if schema_version is None:
            raise LoadError(f"Rule document {origin} has no 'schemaVersion'")
        if isinstance(schema_version, bool) or not isinstance(schema_version, int):
            raise LoadError(f"Rule document {origin}: 'schemaVersion' must be an integer, got {schema_version!r}")
        if schema_version not in SUPPORTED_SCHEMA_VERSIONS:
            raise IncompatibleSchema(
                f"Unsupported rule schemaVersion {schema_version!r} in {origin} "
                f"(supported: {sorted(SUPPORTED_SCHEMA_VERSIONS)})",
                schema_version=schema_version,
            )

        version = document.get("version")
        if expected_version is not None and version != expected_version:
            raise IncompatibleSchema(
                f"Rule document {origin} is version {version!r}, expected {expected_version!r}",
                version=version,
            )

        raw_rules = document.get("rules")
        if not isinstance(raw_rules, list):
            raise LoadError(f"Rule document {origin} must contain a 'rules' list")

        rules: List[Rule] = []
        seen = set()
        for index, raw in enumerate(raw_rules):
            rule = _parse_rule(raw, index)
            if rule.id in seen:
                raise LoadError(f"Duplicate rule id '{rule.id}' in {origin}")
            seen.add(rule.id)
            rules.append(rule)

        registry = cls(rules, schema_version=schema_version, version=version)
        logger.info(
            f"Loaded {len(rules)} rules from {origin} (schema v{schema_version}, version {version}): "
            + ", ".join(f"{len(registry.rules_of(k))} {k}" for k in RULE_KINDS)
        )
        return registry

    # ── Lookups ────────────────────────────────────────────────────

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def rules_of(self, kind: str) -> Tuple[Rule, ...]:
        """Rules of one kind, in registry order. Unknown kinds yield ()."""
        return self._by_kind.get(kind, ())

    def advisory_for(self, package_name: str) -> FrozenSet[Rule]:
        """Advisories for a package (case-insensitive). Empty set if unknown."""
        return self._by_package.get((package_name or "").strip().lower(), frozenset())

    def policy_rules(self, check: str) -> Tuple[Rule, ...]:
        """Policy-check rules belonging to one named check, in registry order."""
        return self._by_check.get(check, ())

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.get(rule_id)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)

    def __repr__(self) -> str:
        return f"<RuleRegistry version={self.version!r} rules={len(self._rules)}>"
