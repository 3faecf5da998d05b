"""Shared test fixtures."""

from __future__ import annotations

import pytest

from csp_policy.compiler.policy_compiler import PolicyCompiler


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch):
    """Provide default settings for all tests."""
    monkeypatch.setenv("CSP_LOG_JSON", "false")
    monkeypatch.setenv("CSP_LOG_LEVEL", "debug")
    monkeypatch.delenv("CSP_EXPERIMENTAL", raising=False)
    monkeypatch.delenv("CSP_NORMALIZE_DEFAULT_PORTS", raising=False)

    # Reset cached settings
    import csp_policy.config.loader as loader
    loader._settings = None
    yield
    loader._settings = None


@pytest.fixture
def compiler():
    """Compiler with result caching disabled."""
    return PolicyCompiler(cache_size=0)
