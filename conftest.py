"""
Root pytest configuration.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

# Register relaylog testing fixtures for all tests
pytest_plugins = ("relaylog.testing.fixtures",)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests touching real files, sockets or threads end to end",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take >1 second",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics() -> Generator[None, None, None]:
    """Reset the diagnostics module before and after each test.

    The diagnostics module caches ``internal_logging_enabled`` at first use;
    resetting keeps tests from inheriting each other's writer or setting.
    """
    from relaylog.core import diagnostics

    diagnostics._reset_for_tests()
    yield
    diagnostics._reset_for_tests()
