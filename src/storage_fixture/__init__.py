"""Elasticsearch test fixture with container provisioning and local fallback.

## Usage

```python
from storage_fixture import ElasticsearchStorageFixture, get_settings

with ElasticsearchStorageFixture.from_config(get_settings()) as fixture:
    storage = fixture.new_storage()
    storage.index_document({"traceId": "1"})
```
"""

from .clients.elasticsearch import CheckResult, ElasticsearchStorage, StorageBuilder
from .config import FixtureConfig, get_settings
from .container import ELASTICSEARCH_PORT, ContainerHandle, ContainerManager
from .exceptions import (
    ContainerNotReadyError,
    ContainerStartError,
    ContainerStopError,
    FixtureError,
    FixtureStateError,
    HealthCheckError,
    ResourceReleaseError,
    UpstreamError,
)
from .lifecycle import ElasticsearchStorageFixture, FixtureState
from .naming import MAX_INDEX_NAME_LENGTH, derive_index_name
from .session import InitResult, SessionInitializer

__all__ = [
    "ELASTICSEARCH_PORT",
    "MAX_INDEX_NAME_LENGTH",
    "CheckResult",
    "ContainerHandle",
    "ContainerManager",
    "ContainerNotReadyError",
    "ContainerStartError",
    "ContainerStopError",
    "ElasticsearchStorage",
    "ElasticsearchStorageFixture",
    "FixtureConfig",
    "FixtureError",
    "FixtureState",
    "FixtureStateError",
    "HealthCheckError",
    "InitResult",
    "ResourceReleaseError",
    "SessionInitializer",
    "StorageBuilder",
    "UpstreamError",
    "derive_index_name",
    "get_settings",
]
