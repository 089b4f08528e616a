"""
Pytest configuration and shared fixtures.

This module provides central pytest configuration, custom markers,
and shared fixtures for the netcatd test suite.
"""

import os
import socket
from collections.abc import Generator

import pytest

# =============================================================================
# Plugin Registration
# =============================================================================

pytest_plugins = [
    "tests.fixtures.logging",
]


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (real sockets, real processes)"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests (full server, real connections)"
    )
    config.addinivalue_line("markers", "property: Property-based tests (hypothesis)")
    config.addinivalue_line("markers", "slow: Tests that take >1 second to run")


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def sample_config_dict() -> dict:
    """
    Provide a sample configuration dictionary for testing.

    Returns:
        dict: Sample configuration
    """
    return {
        "server": {
            "exec": "/bin/echo hello %a",
            "bind": "127.0.0.1",
            "port": 7994,
            "stdout": True,
        },
        "logging": {
            "level": "debug",
            "colors": False,
        },
    }


@pytest.fixture
def clean_environ(monkeypatch) -> Generator[None, None, None]:
    """Remove NETCATD_* and socket activation variables from the environment."""
    for key in list(os.environ):
        if key.startswith("NETCATD_") or key in ("LISTEN_PID", "LISTEN_FDS"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def ipv6_available() -> bool:
    """Whether the loopback interface accepts IPv6 binds."""
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as s:
            s.bind(("::1", 0))
    except OSError:
        return False
    return True


# =============================================================================
# Test Collection Hooks
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to add markers.

    Args:
        config: Pytest config object
        items: List of collected test items
    """
    # Add 'unit' marker to tests without other markers
    for item in items:
        if not any(
            mark.name in ["integration", "e2e"] for mark in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
