"""
Shared fixtures for the Hawkeye test suite.
"""
import json
import os

import pytest

from hawkeye import create_app
from hawkeye.config import ScannerConfig
from hawkeye.scanner import RuleRegistry, ScanOrchestrator


@pytest.fixture(scope="session")
def registry():
    """The bundled rule registry, loaded once."""
    return RuleRegistry.load()


@pytest.fixture
def config():
    return ScannerConfig(scan_timeout=10.0)


@pytest.fixture
def orchestrator(registry, config):
    return ScanOrchestrator(registry, config)


@pytest.fixture
def make_tree(tmp_path):
    """
    Materialize a source tree under tmp_path.

    Values may be text or a dict (written as JSON). Every file is chmod'ed
    to 0o644 so the result does not depend on the test runner's umask.
    """
    def _make(files, name="target"):
        root = tmp_path / name
        root.mkdir()
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, dict):
                content = json.dumps(content)
            path.write_text(content, encoding="utf-8")
            os.chmod(path, 0o644)
        return root

    return _make


@pytest.fixture
def app(config):
    flask_app = create_app(config)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
