# hawkeye/errors.py
"""
Typed errors raised by the scanning engine.

The engine never encodes transport semantics. The HTTP layer (hawkeye.scan)
maps these to status codes:

    ParseError          400   malformed structured input (manifest JSON)
    InvalidRequest      400   required field missing for the scan kind
    InputTooLarge       413   input exceeds the configured maximum length
    ScanTimeout         504   caller-imposed budget exceeded
    ScanCancelled       503   scan was cancelled cooperatively
    LoadError           --    rule data malformed (startup only)
    IncompatibleSchema  --    rule data uses an unsupported schemaVersion
"""

from __future__ import annotations


class ScanError(Exception):
    """Base class for all engine errors."""

    code = "SCAN_ERROR"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class LoadError(ScanError):
    code = "LOAD_ERROR"


class IncompatibleSchema(LoadError):
    code = "INCOMPATIBLE_SCHEMA"


class ParseError(ScanError):
    code = "PARSE_ERROR"


class InvalidRequest(ScanError):
    code = "INVALID_REQUEST"


class InputTooLarge(ScanError):
    code = "INPUT_TOO_LARGE"

    def __init__(self, size: int, limit: int, source: str | None = None):
        where = f" ({source})" if source else ""
        super().__init__(
            f"Input of {size} bytes{where} exceeds the maximum of {limit} bytes",
            size=size,
            limit=limit,
        )
        self.size = size
        self.limit = limit


class ScanTimeout(ScanError):
    code = "TIMEOUT"


class ScanCancelled(ScanError):
    code = "CANCELLED"
