"""Pytest configuration and shared fixtures for the markpage test suite.

This module provides shared fixtures, test configuration, and utilities
that are used across the entire test suite.
"""

from pathlib import Path
from typing import Generator

import pytest
from utils import MINIMAL_PNG_BYTES, SIMPLE_SVG, cleanup_test_dir, create_test_temp_dir

from markpage.backends import RecordingBackend
from markpage.options import PdfLayoutOptions


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")
    config.addinivalue_line("markers", "network: Tests that would reach the network (always mocked)")


@pytest.fixture(autouse=True)
def _no_network(monkeypatch) -> None:
    """Make sure no test reaches the real network."""
    monkeypatch.setenv("MARKPAGE_DISABLE_NETWORK", "1")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files.

    Yields
    ------
    Path
        Temporary directory path that will be cleaned up after test.

    """
    temp_path = create_test_temp_dir()
    try:
        yield temp_path
    finally:
        cleanup_test_dir(temp_path)


@pytest.fixture
def options() -> PdfLayoutOptions:
    """Default layout options (A4 portrait, 15 mm margins)."""
    return PdfLayoutOptions()


@pytest.fixture
def backend(options: PdfLayoutOptions) -> RecordingBackend:
    """Recording backend sized for the default options."""
    width, height = options.page_size_points
    return RecordingBackend(width, height)


@pytest.fixture
def asset_dir(temp_dir: Path) -> Path:
    """Directory holding a PNG and an SVG referenced by test documents."""
    (temp_dir / "pixel.png").write_bytes(MINIMAL_PNG_BYTES)
    (temp_dir / "diagram.svg").write_bytes(SIMPLE_SVG)
    (temp_dir / "notes.txt").write_text("not an image", encoding="utf-8")
    return temp_dir
