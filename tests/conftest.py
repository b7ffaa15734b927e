"""Shared pytest configuration and fixtures.

This module provides global fixtures and configuration that are available
to all tests in the test suite.

Keep fixtures small, composable, and focused on setup/teardown.
"""

import pytest

from storage_fixture.config import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Make every test read the environment afresh."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
