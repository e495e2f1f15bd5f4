# hawkeye/extensions.py
from __future__ import annotations

import logging

from flask import Flask, current_app

from hawkeye.config import ScannerConfig
from hawkeye.scanner import RuleRegistry, ScanOrchestrator

logger = logging.getLogger(__name__)

EXTENSION_KEY = "hawkeye"


def init_extensions(app: Flask, config: ScannerConfig) -> ScanOrchestrator:
    # Load failures (LoadError / IncompatibleSchema) are fatal to startup
    registry = RuleRegistry.load(config.registry_path, expected_version=config.registry_version)
    orchestrator = ScanOrchestrator(registry, config)
    app.extensions[EXTENSION_KEY] = orchestrator
    return orchestrator


def get_orchestrator() -> ScanOrchestrator:
    return current_app.extensions[EXTENSION_KEY]
