# hawkeye/scanner/scan_request.py
"""
Scan requests.

One frozen dataclass per scan kind, each carrying only the inputs that kind
needs. validate() raises InvalidRequest before any analyzer runs.

    kind         request class          required inputs
    ----------   --------------------   -------------------------
    repo         RepoScanRequest        path (materialized tree)
    package      PackageScanRequest     manifest (package.json text)
    secrets      SecretsScanRequest     code (may be empty)
    skill        SkillAuditRequest      skill_path
    cve-lookup   CVELookupRequest       package, version
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Type, Union

from hawkeye.errors import InvalidRequest


def _require_text(value: Any, field_name: str, kind: str, *, allow_empty: bool = False) -> None:
    if value is None:
        raise InvalidRequest(f"'{field_name}' is required for {kind} scans", field=field_name, kind=kind)
    if not isinstance(value, str):
        raise InvalidRequest(f"'{field_name}' must be a string", field=field_name, kind=kind)
    if not allow_empty and not value.strip():
        raise InvalidRequest(f"'{field_name}' must not be empty", field=field_name, kind=kind)


@dataclass(frozen=True)
class RepoScanRequest:
    kind: ClassVar[str] = "repo"
    path: Optional[str] = None
    branch: str = "main"

    @property
    def target(self) -> str:
        return self.path or ""

    def validate(self) -> None:
        _require_text(self.path, "path", self.kind)


@dataclass(frozen=True)
class PackageScanRequest:
    kind: ClassVar[str] = "package"
    manifest: Optional[str] = None

    @property
    def target(self) -> str:
        return "package.json"

    def validate(self) -> None:
        # Content problems (empty, bad JSON) are ParseErrors, raised by the analyzer
        _require_text(self.manifest, "manifest", self.kind, allow_empty=True)


@dataclass(frozen=True)
class SecretsScanRequest:
    kind: ClassVar[str] = "secrets"
    code: Optional[str] = None

    @property
    def target(self) -> str:
        return "inline-code"

    def validate(self) -> None:
        _require_text(self.code, "code", self.kind, allow_empty=True)


@dataclass(frozen=True)
class SkillAuditRequest:
    kind: ClassVar[str] = "skill"
    skill_path: Optional[str] = None

    @property
    def target(self) -> str:
        return self.skill_path or ""

    def validate(self) -> None:
        _require_text(self.skill_path, "skill_path", self.kind)


@dataclass(frozen=True)
class CVELookupRequest:
    kind: ClassVar[str] = "cve-lookup"
    package: Optional[str] = None
    version: Optional[str] = None

    @property
    def target(self) -> str:
        return f"{self.package}@{self.version}"

    def validate(self) -> None:
        _require_text(self.package, "package", self.kind)
        _require_text(self.version, "version", self.kind)


ScanRequest = Union[
    RepoScanRequest,
    PackageScanRequest,
    SecretsScanRequest,
    SkillAuditRequest,
    CVELookupRequest,
]

REQUEST_TYPES: Dict[str, Type] = {
    cls.kind: cls
    for cls in (RepoScanRequest, PackageScanRequest, SecretsScanRequest, SkillAuditRequest, CVELookupRequest)
}

# Field names accepted from external (camelCase) payloads, per kind
_PAYLOAD_FIELDS: Dict[str, Dict[str, str]] = {
    "repo": {"repoPath": "path", "path": "path", "branch": "branch"},
    "package": {"packageJson": "manifest", "manifest": "manifest"},
    "secrets": {"code": "code"},
    "skill": {"skillPath": "skill_path", "skill_path": "skill_path"},
    "cve-lookup": {"package": "package", "version": "version"},
}


def build_request(kind: str, payload: Optional[Mapping[str, Any]]) -> ScanRequest:
    """
    Build and validate a request from an external payload.
    Keys that the kind does not use are ignored.
    """
    cls = REQUEST_TYPES.get(kind)
    if cls is None:
        raise InvalidRequest(f"Unknown scan kind '{kind}'", kind=kind)
    if payload is not None and not isinstance(payload, Mapping):
        raise InvalidRequest("Request body must be a JSON object", kind=kind)

    kwargs: Dict[str, Any] = {}
    for key, attr in _PAYLOAD_FIELDS[kind].items():
        if payload and key in payload and attr not in kwargs:
            kwargs[attr] = payload[key]
    if kwargs.get("branch") is None:
        kwargs.pop("branch", None)

    request = cls(**kwargs)
    request.validate()
    return request
