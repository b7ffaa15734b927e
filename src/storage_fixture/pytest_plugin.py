"""pytest fixtures for Elasticsearch integration tests.

The plugin is registered through the `pytest11` entry point, so installing the
package makes these fixtures available to every test suite:

- `storage_fixture_config` (session): configuration from the environment
- `elasticsearch_fixture` (session): a ready `ElasticsearchStorageFixture`;
  tests are skipped when no Elasticsearch is reachable
- `index_name` (function): an index name derived from the test name
- `elasticsearch_storage` (function): a storage client for `index_name`

## Usage

```python
def test_write(elasticsearch_storage):
    elasticsearch_storage.index_document({"traceId": "1"})
```

Set `DOCKER_SKIP=true` to run against an instance already listening on
`http://localhost:9200`, and `ES_DEBUG=true` to log every request.
"""

import logging
from collections.abc import Iterator

import attrs
import pytest

from .clients.elasticsearch import ElasticsearchStorage
from .config import FixtureConfig, get_settings
from .exceptions import HealthCheckError
from .lifecycle import ElasticsearchStorageFixture
from .naming import derive_index_name

logger = logging.getLogger(__name__)


def setup_or_skip(fixture: ElasticsearchStorageFixture) -> ElasticsearchStorageFixture:
    """Run `fixture.setup()`, turning an unreachable instance into a skip.

    Args:
        fixture: Fixture in the IDLE state.

    Returns:
        The same fixture, now READY.

    Raises:
        pytest.skip.Exception: If the health check failed on every endpoint.
        Exception: Any other setup error, re-raised after teardown.
    """
    try:
        fixture.setup()
    except HealthCheckError as e:
        fixture.teardown()
        cause = f" (caused by {type(e.cause).__name__}: {e.cause})" if e.cause is not None else ""
        pytest.skip(f"Elasticsearch unavailable for {fixture.image}: {e}{cause}")
    except Exception:
        # A container may already be running
        fixture.teardown()
        raise
    return fixture


@pytest.fixture(scope="session")
def storage_fixture_config() -> FixtureConfig:
    """Fixture configuration read from the environment."""
    return get_settings()


@pytest.fixture(scope="session")
def elasticsearch_fixture(storage_fixture_config: FixtureConfig) -> Iterator[ElasticsearchStorageFixture]:
    """Provision Elasticsearch once per test session.

    Yields:
        ElasticsearchStorageFixture: READY fixture; torn down at session end.
    """
    fixture = setup_or_skip(ElasticsearchStorageFixture.from_config(storage_fixture_config))
    yield fixture
    errors = fixture.teardown()
    if errors:
        logger.warning("%d resource(s) failed to release", len(errors))


@pytest.fixture
def index_name(request: pytest.FixtureRequest) -> str:
    """Index name for the current test (lower-cased, at most 48 characters)."""
    return derive_index_name(request.node.name)


@pytest.fixture
def elasticsearch_storage(
    elasticsearch_fixture: ElasticsearchStorageFixture, index_name: str
) -> Iterator[ElasticsearchStorage]:
    """Storage client for the current test's index.

    The index is deleted and the client closed after the test.

    Yields:
        ElasticsearchStorage: Open client bound to `index_name`.
    """
    builder = attrs.evolve(elasticsearch_fixture.compute_storage_builder(), index=index_name)
    client = builder.build()
    yield client
    try:
        client.clear()
    finally:
        client.close()
