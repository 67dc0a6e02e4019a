"""
Pytest configuration and shared fixtures for altt4 tests.

This module provides common test fixtures, configuration, and utilities
used across the test suite.
"""

import pytest
from pathlib import Path
from typing import Iterable, Optional

from altt4.pipeline.generator import GeneratedSource, TemplateGenerator
from altt4.template.sources import InMemorySource, build_include_lookup
from altt4.utils.config import Altt4Config, set_config
from altt4.utils.constants import INCLUDE_FILE_EXTENSION
from altt4.utils.exceptions import get_fallback_handler
from altt4.utils.logging import setup_logging


TEMPLATE_PATH = "/templates/sample.sgtt"
INCLUDE_DIR = "/templates/include"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep environment overrides and global state out of every test."""
    for name in ("ALTT4_CONFIG", "ALTT4_CULTURE", "ALTT4_DEBUG", "ALTT4_ISOLATION", "ALTT4_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    get_fallback_handler().reset_stats()
    yield
    set_config(None)
    setup_logging()


@pytest.fixture
def config(tmp_path):
    """Configuration with defaults only (points at a missing file)."""
    return Altt4Config(str(tmp_path / "altt4.json"))


@pytest.fixture
def generator(config):
    """Create a fresh TemplateGenerator."""
    return TemplateGenerator(config)


@pytest.fixture
def make_include():
    """Factory for in-memory include files."""
    def _make(name: str, text: Optional[str], directory: str = INCLUDE_DIR) -> InMemorySource:
        return InMemorySource(f"{directory}/{name}", text)
    return _make


@pytest.fixture
def render(generator):
    """Render template text through the full pipeline."""
    def _render(text: str, includes: Iterable = (), path: str = TEMPLATE_PATH) -> GeneratedSource:
        lookup = build_include_lookup(includes, INCLUDE_FILE_EXTENSION)
        return generator.render_one(InMemorySource(path, text), lookup)
    return _render


@pytest.fixture
def template_dir(tmp_path) -> Path:
    """Directory for template files written by a test."""
    directory = tmp_path / "templates"
    directory.mkdir()
    return directory


# Pytest hooks for test collection and reporting
def pytest_collection_modifyitems(config, items):
    """Add markers based on test path."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for complete workflows"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that start a separate interpreter"
    )
