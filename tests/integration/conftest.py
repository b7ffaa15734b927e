"""Shared configuration for integration tests.

Integration tests need Docker (or, with DOCKER_SKIP=true, an Elasticsearch
listening on http://localhost:9200). They are deselected by default; run them
with:

    pytest -m integration tests/integration

The `elasticsearch_fixture`, `index_name` and `elasticsearch_storage` fixtures
come from the storage_fixture pytest plugin.
"""

import pytest

from storage_fixture.foundation.logger import configure_logging


def pytest_configure(config: pytest.Config) -> None:
    """Route fixture logs through the JSON formatter."""
    configure_logging("DEBUG" if config.getoption("verbose") > 1 else "INFO")
