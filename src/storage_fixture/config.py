"""Configuration management for the Elasticsearch test fixture.

This module provides the fixture configuration using Pydantic. All settings
are loaded from environment variables with defaults suitable for a developer
laptop with Docker.

## Configuration Sources

Configuration is read from environment variables. The `get_settings()`
function uses `@lru_cache` so a test session reads the environment once.

## Environment Variables

The following environment variables are supported (all optional with
defaults):

- `DOCKER_SKIP`: Skip container startup and use an instance already listening
  on `http://localhost:9200` (default: `false`)
- `ES_DEBUG`: Log every request/response and their raw content at WARNING, and
  forward the container's output to a logger named after the image
  (default: `false`)
- `ES_IMAGE`: Docker image to start
  (default: `docker.elastic.co/elasticsearch/elasticsearch:7.17.22`)
- `ES_INDEX`: Index used for the session health check (default: `zipkin-test`)
- `ES_READINESS_TIMEOUT`: Seconds to wait for `GET /` on the container to
  succeed (default: `60`)
- `ES_HEALTH_TIMEOUT`: Per-request timeout in seconds for the storage
  client (default: `10`)

## Usage

```python
from storage_fixture.config import get_settings
from storage_fixture.lifecycle import ElasticsearchStorageFixture

fixture = ElasticsearchStorageFixture.from_config(get_settings())
```
"""

import os
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import SettingsConfigDict

DEFAULT_IMAGE = "docker.elastic.co/elasticsearch/elasticsearch:7.17.22"
DEFAULT_INDEX = "zipkin-test"

# Single-node settings; without them a 7.x image refuses to form a cluster.
DEFAULT_CONTAINER_ENV: dict[str, str] = {
    "discovery.type": "single-node",
    "xpack.security.enabled": "false",
    "ES_JAVA_OPTS": "-Xms512m -Xmx512m",
}


def _env_flag(name: str) -> bool:
    """Read a boolean switch; only the string "true" (any case) enables it."""
    return os.getenv(name, "false").lower() == "true"


class FixtureConfig(BaseModel):
    """Configuration for the Elasticsearch storage fixture.

    Attributes:
        image: Docker image to start.
        index: Index name used by the fixture's health check.
        docker_skip: Skip container startup entirely and assume a local
            instance on the default port.
        debug: Enable request/response logging decorators and container
            output forwarding.
        readiness_timeout_s: Deadline for the container's `GET /` probe.
        readiness_interval_s: Sleep between readiness probes.
        health_timeout_s: Per-request timeout of the storage client.
        container_env: Environment passed to the container.
    """

    image: str = DEFAULT_IMAGE
    index: str = DEFAULT_INDEX
    docker_skip: bool = False
    debug: bool = False
    readiness_timeout_s: float = Field(default=60.0, gt=0)
    readiness_interval_s: float = Field(default=0.5, gt=0)
    health_timeout_s: float = Field(default=10.0, gt=0)
    container_env: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_CONTAINER_ENV))

    model_config = SettingsConfigDict(frozen=True)

    @classmethod
    def from_env(cls) -> "FixtureConfig":
        """Create FixtureConfig from environment variables.

        Returns:
            Configured FixtureConfig instance.
        """
        return cls(
            image=os.getenv("ES_IMAGE") or DEFAULT_IMAGE,
            index=os.getenv("ES_INDEX") or DEFAULT_INDEX,
            docker_skip=_env_flag("DOCKER_SKIP"),
            debug=_env_flag("ES_DEBUG"),
            readiness_timeout_s=float(os.getenv("ES_READINESS_TIMEOUT", "60")),
            health_timeout_s=float(os.getenv("ES_HEALTH_TIMEOUT", "10")),
        )


@lru_cache(maxsize=1)
def get_settings() -> "FixtureConfig":
    """Load and return fixture settings (cached per process).

    Returns:
        A frozen `FixtureConfig` built from the environment.

    Note:
        Tests that change the environment must call
        `get_settings.cache_clear()` to pick up new values.
    """
    return FixtureConfig.from_env()
