"""
Root pytest configuration.
"""

from __future__ import annotations

import pytest

# Register hecrelay testing fixtures for all tests
pytest_plugins = ("hecrelay.testing.fixtures",)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests exercising the full invocation path",
    )
