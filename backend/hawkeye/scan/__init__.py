"""
Scan API: thin HTTP layer over the scanning engine.

These endpoints don't persist anything. They build a ScanRequest from the
request body, run it synchronously and return the Report.

Endpoints:
    GET  /health
    POST /api/scan/repo       {"repoPath": "...", "branch": "main"}
    POST /api/scan/package    {"packageJson": "{...}"}
    POST /api/scan/secrets    {"code": "..."}
    POST /api/audit/skill     {"skillPath": "..."}
    GET  /api/cve/check       ?package=...&version=...
"""

from hawkeye.scan.routes import scan_bp

__all__ = ["scan_bp"]
