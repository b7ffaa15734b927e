"""Setup/teardown lifecycle of the Elasticsearch test fixture.

`ElasticsearchStorageFixture` composes a `ContainerManager` and a
`SessionInitializer`:

```
setup():
    handle   = manager.start(image, skip)          # best-effort, may be None
    endpoint = manager.resolve_base_url(handle)
    result   = initializer.try_initialize(endpoint)
    if result failed and handle:                    # one local retry
        manager.stop(handle); handle = None
        result = initializer.try_initialize(local endpoint)
    if result failed: raise HealthCheckError

teardown():
    release registered resources in order          # errors logged and collected
    manager.stop(handle)                           # always attempted
```

## Usage

```python
with ElasticsearchStorageFixture(image=IMAGE, index="zipkin-test") as fixture:
    storage = fixture.new_storage()   # closed by teardown
    storage.index_document({"name": "span"})
```
"""

import enum
from collections.abc import Callable
from typing import Any, TypeVar

import attrs

from .clients.elasticsearch import ElasticsearchStorage, StorageBuilder
from .clients.mixins import LoggerMixin
from .config import DEFAULT_IMAGE, DEFAULT_INDEX, FixtureConfig
from .container import ContainerHandle, ContainerManager
from .exceptions import FixtureStateError, ResourceReleaseError
from .session import InitResult, SessionInitializer

R = TypeVar("R")


class FixtureState(enum.Enum):
    """Lifecycle states of a fixture."""

    IDLE = "idle"
    STARTING = "starting"
    RETRYING = "retrying"
    READY = "ready"
    FAILED = "failed"
    STOPPED = "stopped"


def _release_callback(resource: Any) -> Callable[[], Any]:
    if hasattr(resource, "close") and callable(resource.close):
        return resource.close
    if callable(resource):
        return resource
    msg = f"cannot register {resource!r}: expected a callable or an object with close()"
    raise TypeError(msg)


@attrs.define(frozen=False, slots=True)
class ElasticsearchStorageFixture(LoggerMixin):
    """Provisions an Elasticsearch instance for a test scope.

    Attributes:
        image: Docker image to start.
        index: Index used for the health check and by `new_storage()`.
        debug: Install logging decorators on every storage client built.
        skip_container: Do not start a container; use the local instance.
        manager: Starts and stops the container.
        initializer: Health-checks an endpoint.

    Note:
        Not thread safe. Setup, use and teardown run sequentially within one
        test scope.
    """

    image: str = DEFAULT_IMAGE
    index: str = DEFAULT_INDEX
    debug: bool = False
    skip_container: bool = False
    manager: ContainerManager = attrs.field(factory=ContainerManager)
    initializer: SessionInitializer = attrs.field(factory=SessionInitializer)
    _container: ContainerHandle | None = attrs.field(init=False, default=None)
    _releases: list[tuple[Any, Callable[[], Any]]] = attrs.field(init=False, factory=list)
    _state: FixtureState = attrs.field(init=False, default=FixtureState.IDLE)
    _release_errors: list[ResourceReleaseError] = attrs.field(init=False, factory=list)

    @classmethod
    def from_config(cls, config: FixtureConfig, index: str | None = None) -> "ElasticsearchStorageFixture":
        """Create a fixture from FixtureConfig.

        Args:
            config: Fixture configuration.
            index: Override for `config.index`.

        Returns:
            Fixture in the IDLE state.
        """
        return cls(
            image=config.image,
            index=config.index if index is None else index,
            debug=config.debug,
            skip_container=config.docker_skip,
            manager=ContainerManager.from_config(config),
            initializer=SessionInitializer.from_config(config),
        )

    @property
    def state(self) -> FixtureState:
        return self._state

    @property
    def container(self) -> ContainerHandle | None:
        """The running container's handle, or None when using the local instance."""
        return self._container

    @property
    def release_errors(self) -> list[ResourceReleaseError]:
        """Errors collected by the last `teardown()`."""
        return list(self._release_errors)

    @property
    def base_url(self) -> str:
        return self.manager.resolve_base_url(self._container)

    def setup(self) -> None:
        """Start the container (best-effort) and verify the storage is healthy.

        Any exception leaves the fixture FAILED; `teardown()` still stops a
        container that was started.

        Raises:
            FixtureStateError: If the fixture is not IDLE.
            HealthCheckError: If neither the container nor the local instance
                passes the health check. The check's error is chained.
        """
        self._require_idle("setup()")

        self._state = FixtureState.STARTING
        try:
            result = self._start_and_initialize()
        except Exception:
            self._state = FixtureState.FAILED
            raise

        if result.error is not None:
            self._state = FixtureState.FAILED
            raise result.error from result.error.cause

        self._state = FixtureState.READY
        self._logger.info(
            "Elasticsearch ready at %s",
            self.base_url,
            extra={"image": self.image, "index": self.index, "container": self._container is not None},
        )

    def teardown(self) -> list[ResourceReleaseError]:
        """Release registered resources, then stop the container.

        Every resource is released in registration order even if earlier ones
        fail, and the container stop is attempted even if all of them fail.

        Returns:
            The release errors, which were logged rather than raised.
        """
        errors: list[ResourceReleaseError] = []
        releases, self._releases = self._releases, []
        try:
            for resource, release in releases:
                try:
                    release()
                except Exception as e:
                    error = ResourceReleaseError(resource, e)
                    self._logger.warning(
                        "error closing session %s",
                        e,
                        exc_info=True,
                        extra={"resource": repr(resource)},
                    )
                    errors.append(error)
        finally:
            if self._container is not None:
                self.manager.stop(self._container)
                self._container = None
            self._release_errors = errors
            self._state = FixtureState.STOPPED
        return errors

    def register(self, resource: R) -> R:
        """Register a resource to release on teardown.

        Args:
            resource: Zero-argument callable, or an object with `close()`.

        Returns:
            `resource`, so registration can be inlined.

        Raises:
            TypeError: If the resource is neither.
        """
        self._releases.append((resource, _release_callback(resource)))
        return resource

    def compute_storage_builder(self) -> StorageBuilder:
        """Describe a storage client for the current endpoint and index."""
        return self.initializer.compute_storage_builder(self.base_url, self.index, self.debug)

    def new_storage(self, index: str | None = None) -> ElasticsearchStorage:
        """Build a storage client that teardown will close.

        Args:
            index: Index override, e.g. a per-test name from `derive_index_name`.

        Returns:
            An open ElasticsearchStorage.
        """
        builder = self.compute_storage_builder()
        if index is not None:
            builder = attrs.evolve(builder, index=index)
        return self.register(builder.build())

    def _start_and_initialize(self) -> InitResult:
        self._container = self.manager.start(self.image, skip=self.skip_container)
        result = self._try_initialize()

        if not result.ok and self._container is not None:
            self._logger.warning(
                "Couldn't connect to docker image %s: %s",
                self.image,
                result.error,
                extra={"image": self.image, "index": self.index},
            )
            self._state = FixtureState.RETRYING
            self.manager.stop(self._container)
            self._container = None  # try with local connection instead
            result = self._try_initialize()
        return result

    def _require_idle(self, operation: str) -> None:
        if self._state is not FixtureState.IDLE:
            msg = f"{operation} requires an idle fixture, state is {self._state.value}"
            raise FixtureStateError(msg)

    def _try_initialize(self) -> InitResult:
        endpoint = self.manager.resolve_base_url(self._container)
        return self.initializer.try_initialize(endpoint, self.index, self.debug)

    def __enter__(self) -> "ElasticsearchStorageFixture":
        # Entering a fixture that is already in use must leave it intact
        self._require_idle("with-statement entry")
        try:
            self.setup()
        except Exception:
            self.teardown()
            raise
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.teardown()
