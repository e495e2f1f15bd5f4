# hawkeye/__init__.py
"""
App factory for the Hawkeye scan API.

    - Logging level from HAWKEYE_ENV (production → INFO, otherwise DEBUG)
    - CORS origins from CORS_ORIGINS (comma-separated)
    - Scanner configuration from HAWKEYE_* env vars unless passed explicitly
    - Rule registry loaded once at startup; a bad rule file stops the app
    - Engine errors mapped to JSON responses with transport status codes
"""

from __future__ import annotations

__version__ = "1.0.0"

import logging
import os
import traceback
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from hawkeye.config import ScannerConfig
from hawkeye.errors import (
    InputTooLarge,
    InvalidRequest,
    ParseError,
    ScanCancelled,
    ScanError,
    ScanTimeout,
)
from hawkeye.extensions import init_extensions
from hawkeye.scan import scan_bp

error_logger = logging.getLogger("hawkeye.errors")

# Engine error → HTTP status. Anything else derived from ScanError is a 500.
ERROR_STATUS = {
    ParseError: 400,
    InvalidRequest: 400,
    InputTooLarge: 413,
    ScanCancelled: 503,
    ScanTimeout: 504,
}


def _is_production() -> bool:
    return os.getenv("HAWKEYE_ENV", "").lower() == "production"


def _status_for(error: ScanError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def create_app(config: Optional[ScannerConfig] = None) -> Flask:
    app = Flask(__name__)

    is_prod = _is_production()

    # ── Logging ──────────────────────────────────────────────────────
    if is_prod:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        app.logger.setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )
        app.logger.setLevel(logging.DEBUG)

    logging.getLogger("werkzeug").setLevel(logging.INFO)
    # ─────────────────────────────────────────────────────────────────

    # ── CORS ────────────────────────────────────────────────────────
    cors_env = os.getenv("CORS_ORIGINS")
    if cors_env:
        cors_origins = [o.strip() for o in cors_env.split(",") if o.strip()]
    else:
        cors_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    CORS(app, resources={
        r"/*": {
            "origins": cors_origins,
            "allow_headers": ["Content-Type", "Authorization"],
            "methods": ["GET", "POST", "OPTIONS"],
        }
    })

    # ── Scanner ──────────────────────────────────────────────────────
    config = config or ScannerConfig.from_env()
    # Bodies carry the scanned text; leave headroom for JSON encoding
    app.config["MAX_CONTENT_LENGTH"] = config.max_input_length * 2 + 64 * 1024
    init_extensions(app, config)

    # ── Blueprints ───────────────────────────────────────────────────
    app.register_blueprint(scan_bp)

    # ── Error Handlers ───────────────────────────────────────────────

    @app.errorhandler(ScanError)
    def scan_error(e: ScanError):
        status = _status_for(e)
        if status >= 500:
            error_logger.warning(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), status

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({
            "error": "Not found",
            "message": "The requested resource was not found.",
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({
            "error": "Method not allowed",
            "message": "This HTTP method is not allowed for this endpoint.",
        }), 405

    @app.errorhandler(413)
    def payload_too_large(e):
        return jsonify({
            "error": "Payload too large",
            "message": "The request body exceeds the maximum allowed size.",
        }), 413

    @app.errorhandler(500)
    def internal_error(e):
        error_logger.error(
            "500 Internal Server Error:\n%s", traceback.format_exc()
        )
        return jsonify({
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
        }), 500

    return app
