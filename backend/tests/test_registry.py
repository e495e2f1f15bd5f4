"""
Tests for the Rule Registry
===========================

Loading (path, mapping, bundled default), validation failures and lookups.
"""
import dataclasses
import json

import pytest
from packaging.specifiers import SpecifierSet

from hawkeye.errors import IncompatibleSchema, LoadError
from hawkeye.scanner.registry import (
    KIND_ADVISORY,
    KIND_POLICY,
    KIND_SECRET,
    RULE_KINDS,
    RuleRegistry,
)


def _doc(*rules, schema_version=1, version="test"):
    return {"schemaVersion": schema_version, "version": version, "rules": list(rules)}


SECRET = {"id": "S1", "kind": "secret", "title": "Token", "severity": "high", "pattern": "tok_[a-z]{4}"}
ADVISORY = {
    "id": "A1", "kind": "dependency-advisory", "title": "Bug", "severity": "medium",
    "package": "Left-Pad", "affected": ["<1.0.0"],
}


# =============================================================================
# Test: bundled rules
# =============================================================================

class TestDefaultRegistry:

    def test_loads_without_source(self, registry):
        assert registry.schema_version == 1
        assert registry.version
        assert len(registry) > 0

    def test_kinds_partition_the_rules(self, registry):
        assert sum(len(registry.rules_of(k)) for k in RULE_KINDS) == len(registry)
        for kind in RULE_KINDS:
            assert all(r.kind == kind for r in registry.rules_of(kind))

    def test_rules_of_keeps_registry_order(self, registry):
        expected = [r.id for r in registry.rules if r.kind == KIND_SECRET]
        assert [r.id for r in registry.rules_of(KIND_SECRET)] == expected

    def test_unknown_kind_is_empty(self, registry):
        assert registry.rules_of("nope") == ()

    def test_aws_rule_present(self, registry):
        rule = registry.get("SECRET-AWS-ACCESS-KEY")
        assert rule is not None
        assert rule.title == "AWS Access Key"
        assert rule.severity == "critical"

    def test_every_policy_check_group_has_rules(self, registry):
        for check in ("file_permissions", "network_calls", "code_quality", "injection_patterns"):
            assert registry.policy_rules(check), check


# =============================================================================
# Test: lookups
# =============================================================================

class TestAdvisoryLookup:

    def test_known_package(self, registry):
        advisories = registry.advisory_for("lodash")
        assert isinstance(advisories, frozenset)
        assert {r.id for r in advisories} == {"ADV-LODASH-2021-23337"}

    def test_case_insensitive(self, registry):
        assert registry.advisory_for("LoDash") == registry.advisory_for("lodash")

    def test_unknown_package_is_empty(self, registry):
        assert registry.advisory_for("left-pad") == frozenset()

    def test_package_name_normalized_on_load(self):
        registry = RuleRegistry.load(_doc(ADVISORY))
        assert registry.rules_of(KIND_ADVISORY)[0].package == "left-pad"
        assert len(registry.advisory_for("left-pad")) == 1


# =============================================================================
# Test: sources
# =============================================================================

class TestLoadSources:

    def test_from_mapping(self):
        registry = RuleRegistry.load(_doc(SECRET, ADVISORY))
        assert [r.id for r in registry] == ["S1", "A1"]
        assert registry.version == "test"

    def test_from_path(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(_doc(SECRET)), encoding="utf-8")
        registry = RuleRegistry.load(str(path))
        assert registry.get("S1").regex.search("x tok_abcd y")

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError):
            RuleRegistry.load(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(LoadError, match="Invalid JSON"):
            RuleRegistry.load(str(path))

    def test_rules_are_immutable(self):
        rule = RuleRegistry.load(_doc(SECRET)).get("S1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.severity = "low"

    def test_ignore_case_flag(self):
        rule = dict(SECRET, pattern="password", ignoreCase=True)
        registry = RuleRegistry.load(_doc(rule))
        assert registry.get("S1").regex.search("PASSWORD")

    def test_octal_mode_mask(self):
        rule = {"id": "P1", "kind": "policy-check", "check": "file_permissions",
                "title": "ww", "severity": "high", "modeMask": "0o002"}
        registry = RuleRegistry.load(_doc(rule))
        assert registry.policy_rules("file_permissions")[0].mode_mask == 0o002
        assert registry.rules_of(KIND_POLICY)[0].id == "P1"

    def test_advisory_ranges_compiled(self):
        registry = RuleRegistry.load(_doc(dict(ADVISORY, affected=[">=0.8.1 <1.0.0", "=1.2.0"])))
        (rule,) = registry.advisory_for("left-pad")
        assert rule.ranges == (SpecifierSet(">=0.8.1,<1.0.0"), SpecifierSet("==1.2.0"))


# =============================================================================
# Test: malformed rule data
# =============================================================================

class TestLoadErrors:

    @pytest.mark.parametrize("document", [
        {"schemaVersion": 1},
        {"schemaVersion": 1, "rules": {}},
        {"rules": []},
        _doc(SECRET, SECRET),
        _doc(dict(SECRET, kind="magic")),
        _doc(dict(SECRET, severity="severe")),
        _doc(dict(SECRET, pattern="(unclosed")),
        _doc({"id": "S2", "kind": "secret", "title": "x", "severity": "low"}),
        _doc(dict(ADVISORY, package="")),
        _doc(dict(ADVISORY, affected=["~>1.0"])),
        _doc({"id": "P1", "kind": "policy-check", "title": "x", "severity": "low", "pattern": "a"}),
        _doc({"id": "P2", "kind": "policy-check", "check": "c", "title": "x", "severity": "low"}),
        _doc("not an object"),
        _doc(dict(ADVISORY, affected=[5])),
        _doc(dict(ADVISORY, affected=["   "])),
        {"schemaVersion": [1], "rules": []},
        {"schemaVersion": True, "rules": []},
        {"schemaVersion": "1", "rules": []},
    ], ids=[
        "no-rules", "rules-not-list", "no-schema-version", "duplicate-id", "bad-kind",
        "bad-severity", "bad-regex", "secret-without-pattern", "advisory-without-package",
        "bad-range", "policy-without-check", "policy-without-predicate", "rule-not-object",
        "range-not-string", "blank-range", "schema-version-list", "schema-version-bool",
        "schema-version-string",
    ])
    def test_rejected(self, document):
        with pytest.raises(LoadError):
            RuleRegistry.load(document)

    def test_unsupported_schema_version(self):
        with pytest.raises(IncompatibleSchema):
            RuleRegistry.load(_doc(SECRET, schema_version=2))

    def test_incompatible_schema_is_a_load_error(self):
        assert issubclass(IncompatibleSchema, LoadError)

    def test_version_pin_mismatch(self):
        with pytest.raises(IncompatibleSchema):
            RuleRegistry.load(_doc(SECRET, version="1"), expected_version="2")

    def test_version_pin_match(self):
        registry = RuleRegistry.load(_doc(SECRET, version="2"), expected_version="2")
        assert registry.version == "2"
