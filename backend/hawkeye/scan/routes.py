# hawkeye/scan/routes.py
"""
Scan API routes.

Each endpoint maps one external payload onto a ScanRequest and returns the
serialized Report. Engine errors are not handled here: they propagate to the
ScanError handler registered by the app factory, which owns the mapping to
status codes.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from hawkeye import __version__
from hawkeye.errors import InvalidRequest
from hawkeye.extensions import get_orchestrator
from hawkeye.scanner.scan_request import build_request

logger = logging.getLogger(__name__)

SERVICE_NAME = "Hawkeye Security Audit"

scan_bp = Blueprint("scan", __name__)


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        raise InvalidRequest("Request body must be JSON")
    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object")
    return body


def _run(kind: str, payload: dict):
    scan_request = build_request(kind, payload)
    report = get_orchestrator().execute(scan_request)
    result = {"service": SERVICE_NAME, **report.to_dict()}
    return jsonify(result), 200


@scan_bp.get("/health")
def health():
    registry = get_orchestrator().registry
    return jsonify({
        "status": "ok",
        "service": f"{SERVICE_NAME} API",
        "version": __version__,
        "rules": {
            "version": registry.version,
            "schemaVersion": registry.schema_version,
            "count": len(registry),
        },
    }), 200


@scan_bp.post("/api/scan/repo")
def scan_repo():
    return _run("repo", _json_body())


@scan_bp.post("/api/scan/package")
def scan_package():
    return _run("package", _json_body())


@scan_bp.post("/api/scan/secrets")
def scan_secrets():
    return _run("secrets", _json_body())


@scan_bp.post("/api/audit/skill")
def audit_skill():
    return _run("skill", _json_body())


@scan_bp.get("/api/cve/check")
def cve_check():
    return _run("cve-lookup", request.args.to_dict())
