# hawkeye/config.py
"""
Scanner configuration.

The engine consumes a ScannerConfig at construction time and never reads
environment variables itself. Only the application factory calls
ScannerConfig.from_env().

Environment variables (all optional):
    HAWKEYE_MAX_INPUT_LENGTH   max bytes per scanned text        (1048576)
    HAWKEYE_FRESHNESS_FLOOR    min major version before "unaudited" (1)
    HAWKEYE_AUDIT_WEIGHTS      "dependencies=30,injection_patterns=25"
    HAWKEYE_REGISTRY_PATH      path to a rules JSON file (bundled rules if unset)
    HAWKEYE_REGISTRY_VERSION   pin the rules "version" field
    HAWKEYE_SCAN_TIMEOUT       seconds per scan request          (30)
    HAWKEYE_MAX_WORKERS        analyzer threads per repo scan    (3)
    HAWKEYE_MAX_FILES          files walked per tree             (5000)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_IGNORED_DIRS: Tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    "dist",
    "build",
)


@dataclass(frozen=True)
class ScannerConfig:
    max_input_length: int = 1024 * 1024
    freshness_floor: int = 1
    audit_weights: Mapping[str, float] = field(default_factory=dict)
    registry_path: Optional[str] = None
    registry_version: Optional[str] = None
    excerpt_prefix: int = 8
    scan_timeout: Optional[float] = 30.0
    max_workers: int = 3
    max_files: int = 5000
    ignored_dirs: Tuple[str, ...] = DEFAULT_IGNORED_DIRS

    def __post_init__(self):
        if self.max_input_length < 0:
            raise ValueError("max_input_length must be >= 0")
        if self.excerpt_prefix < 0:
            raise ValueError("excerpt_prefix must be >= 0")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        for name, weight in self.audit_weights.items():
            if weight < 0:
                raise ValueError(f"audit weight for '{name}' must be >= 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScannerConfig":
        env = os.environ if environ is None else environ
        kwargs = {}

        if env.get("HAWKEYE_MAX_INPUT_LENGTH"):
            kwargs["max_input_length"] = int(env["HAWKEYE_MAX_INPUT_LENGTH"])
        if env.get("HAWKEYE_FRESHNESS_FLOOR"):
            kwargs["freshness_floor"] = int(env["HAWKEYE_FRESHNESS_FLOOR"])
        if env.get("HAWKEYE_AUDIT_WEIGHTS"):
            kwargs["audit_weights"] = parse_weights(env["HAWKEYE_AUDIT_WEIGHTS"])
        if env.get("HAWKEYE_REGISTRY_PATH"):
            kwargs["registry_path"] = env["HAWKEYE_REGISTRY_PATH"]
        if env.get("HAWKEYE_REGISTRY_VERSION"):
            kwargs["registry_version"] = env["HAWKEYE_REGISTRY_VERSION"]
        if env.get("HAWKEYE_SCAN_TIMEOUT"):
            kwargs["scan_timeout"] = float(env["HAWKEYE_SCAN_TIMEOUT"])
        if env.get("HAWKEYE_MAX_WORKERS"):
            kwargs["max_workers"] = int(env["HAWKEYE_MAX_WORKERS"])
        if env.get("HAWKEYE_MAX_FILES"):
            kwargs["max_files"] = int(env["HAWKEYE_MAX_FILES"])

        config = cls(**kwargs)
        logger.debug(f"Scanner config loaded from environment: {config}")
        return config


def parse_weights(raw: str) -> Dict[str, float]:
    """Parse "name=weight,name=weight" into a dict."""
    weights: Dict[str, float] = {}
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Invalid audit weight entry: {part!r}")
        weights[name.strip()] = float(value)
    return weights
