"""
Root pytest configuration.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "integration: Tests that spawn real worker processes",
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
def reset_diagnostics_cache() -> Generator[None, None, None]:
    """Reset the diagnostics enablement cache and rate-limit memory.

    The diagnostics module reads ``internal_logging_enabled`` once and caches
    it; each test starts from a clean cache so environment overrides apply.
    """
    import relaylog.core.diagnostics as diag

    diag._internal_logging_enabled = None
    diag._reset_rate_limits()
    yield
    diag._internal_logging_enabled = None
    diag._reset_rate_limits()
