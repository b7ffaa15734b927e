"""Container management for the Elasticsearch fixture.

This module starts and stops a single Elasticsearch container through
testcontainers-python and resolves the base URL the storage client should
use.

## Best-effort startup

`ContainerManager.start()` never raises. If Docker is missing, the image
cannot be pulled, or `GET /` does not succeed before the readiness deadline,
the failure is logged as a warning and `None` is returned. Callers then fall
back to an instance already running on `http://localhost:9200`.

## Usage

```python
manager = ContainerManager(readiness_timeout_s=60)
handle = manager.start("docker.elastic.co/elasticsearch/elasticsearch:7.17.22")
base_url = manager.resolve_base_url(handle)  # http://127.0.0.1:32768 or http://localhost:9200
...
manager.stop(handle)
```
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

import attrs
import docker.errors
import httpx
from testcontainers.core.container import DockerContainer

from .config import DEFAULT_CONTAINER_ENV, FixtureConfig
from .clients.mixins import LoggerMixin
from .exceptions import ContainerNotReadyError, ContainerStartError, ContainerStopError
from .foundation.retry import wait_until

ELASTICSEARCH_PORT = 9200
LOCAL_HOST = "localhost"


@attrs.define(frozen=False, slots=True)
class ContainerHandle:
    """A started container and the address it is reachable on.

    Attributes:
        image: Image the container was started from.
        container: The testcontainers wrapper.
        port: Container-side port Elasticsearch listens on.

    Note:
        Only `ContainerManager` starts and stops the container behind a
        handle. The handle's `stopped` flag is set by `ContainerManager.stop`.
    """

    image: str
    container: DockerContainer
    port: int = ELASTICSEARCH_PORT
    _stopped: bool = attrs.field(init=False, default=False)
    _log_follower: threading.Thread | None = attrs.field(init=False, default=None)

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def running(self) -> bool:
        """True while the Docker container reports status `running`."""
        if self._stopped:
            return False
        wrapped = self.container.get_wrapped_container()
        if wrapped is None:
            return False
        try:
            wrapped.reload()
        except docker.errors.DockerException:
            return False
        return wrapped.status == "running"

    @property
    def host(self) -> str:
        """Host the mapped port is published on."""
        return self.container.get_container_host_ip()

    @property
    def mapped_port(self) -> int:
        """Host port mapped to the container's Elasticsearch port."""
        return int(self.container.get_exposed_port(self.port))


@attrs.define(frozen=False, slots=True)
class ContainerManager(LoggerMixin):
    """Starts, probes and stops the Elasticsearch container.

    Attributes:
        port: Elasticsearch port inside the container, also the port of the
            local fallback instance.
        readiness_timeout_s: Deadline for `GET /` to succeed after start.
        readiness_interval_s: Sleep between readiness probes.
        probe_timeout_s: Timeout of a single readiness request.
        env: Environment variables passed to the container.
        follow_output: Forward container output to a logger named after the
            image (debug mode).
        container_factory: Builds the testcontainers wrapper for an image.
    """

    port: int = ELASTICSEARCH_PORT
    readiness_timeout_s: float = 60.0
    readiness_interval_s: float = 0.5
    probe_timeout_s: float = 2.0
    env: dict[str, str] = attrs.field(factory=lambda: dict(DEFAULT_CONTAINER_ENV))
    follow_output: bool = False
    container_factory: Callable[[str], DockerContainer] = DockerContainer

    @classmethod
    def from_config(cls, config: FixtureConfig) -> "ContainerManager":
        """Create a ContainerManager from FixtureConfig.

        Args:
            config: Fixture configuration.

        Returns:
            Configured ContainerManager instance.
        """
        return cls(
            readiness_timeout_s=config.readiness_timeout_s,
            readiness_interval_s=config.readiness_interval_s,
            env=dict(config.container_env),
            follow_output=config.debug,
        )

    @property
    def local_base_url(self) -> str:
        """Base URL of the instance assumed to run on this machine."""
        return f"http://{LOCAL_HOST}:{self.port}"

    def start(self, image: str, skip: bool = False) -> ContainerHandle | None:
        """Start a container from `image` and wait for it to answer `GET /`.

        Args:
            image: Docker image to run.
            skip: Do not start anything; the caller uses the local instance.

        Returns:
            A handle to the running container, or None if startup was skipped
            or failed. Failures are logged, never raised.
        """
        if skip:
            self._logger.info("Skipping startup of docker %s", image, extra={"image": image})
            return None

        self._logger.info("Starting docker image %s", image, extra={"image": image})
        container: DockerContainer | None = None
        try:
            container = self.container_factory(image).with_exposed_ports(self.port)
            for key, value in self.env.items():
                container = container.with_env(key, value)
            container.start()

            handle = ContainerHandle(image=image, container=container, port=self.port)
            base_url = f"http://{handle.host}:{handle.mapped_port}"
            self._wait_until_ready(base_url, image)
        except Exception as e:
            self._logger.warning(
                "Couldn't start docker image %s: %s",
                image,
                e,
                exc_info=True,
                extra={"image": image},
            )
            if container is not None:
                self._discard(container, image)
            return None

        if self.follow_output:
            try:
                self._follow_output(handle)
            except docker.errors.DockerException as e:
                self._logger.warning("Couldn't follow output of %s: %s", image, e, extra={"image": image})

        self._logger.info(
            "Started docker image %s",
            image,
            extra={"image": image, "base_url": base_url},
        )
        return handle

    def resolve_base_url(self, handle: ContainerHandle | None) -> str:
        """Resolve the base URL the storage client should connect to.

        Args:
            handle: Handle returned by `start()`, or None.

        Returns:
            `http://{host}:{mapped_port}` for a running container, otherwise
            the local default `http://localhost:9200`.
        """
        if handle is not None and handle.running:
            return f"http://{handle.host}:{handle.mapped_port}"
        # Docker unavailable or the container failed: use a local instance
        return self.local_base_url

    def stop(self, handle: ContainerHandle | None) -> None:
        """Stop the container behind `handle`.

        Safe to call with None or with an already stopped handle. A failing
        stop is logged and swallowed so teardown can finish.

        Args:
            handle: Handle returned by `start()`, or None.
        """
        if handle is None or handle.stopped:
            return

        self._logger.info("Stopping docker image %s", handle.image, extra={"image": handle.image})
        try:
            handle.container.stop()
        except Exception as e:
            error = ContainerStopError(f"Couldn't stop docker image {handle.image}: {e}")
            self._logger.warning(str(error), exc_info=True, extra={"image": handle.image})
        finally:
            handle._stopped = True

    def _wait_until_ready(self, base_url: str, image: str) -> None:
        """Block until `GET {base_url}/` answers 2xx or the deadline passes.

        Raises:
            ContainerStartError: If the instance is still not ready at the
                deadline.
        """
        probe_url = f"{base_url}/"

        def probe() -> None:
            response = httpx.get(probe_url, timeout=self.probe_timeout_s)
            if not response.is_success:
                raise ContainerNotReadyError(probe_url, response.status_code)

        try:
            wait_until(
                probe,
                timeout_s=self.readiness_timeout_s,
                interval_s=self.readiness_interval_s,
                retry_on=(httpx.HTTPError, ContainerNotReadyError),
                logger=self._logger,
                message="Waiting for docker image to answer",
                extra={"image": image, "url": probe_url},
            )
        except (httpx.HTTPError, ContainerNotReadyError) as e:
            msg = f"{image} not ready at {probe_url} after {self.readiness_timeout_s}s: {e}"
            raise ContainerStartError(msg) from e

    def _discard(self, container: DockerContainer, image: str) -> None:
        """Stop a container whose startup failed."""
        try:
            container.stop()
        except Exception:
            self._logger.debug("Discarding failed container for %s also failed", image, exc_info=True)

    def _follow_output(self, handle: ContainerHandle) -> None:
        """Forward container output to a logger named after the image."""
        output_logger = logging.getLogger(handle.image)
        wrapped = handle.container.get_wrapped_container()

        def forward(stream: Any) -> None:
            try:
                for line in stream:
                    output_logger.info(line.decode("utf-8", errors="replace").rstrip())
            except docker.errors.DockerException:
                # Stream ends with an error when the container is removed
                output_logger.debug("Output stream of %s closed", handle.image)

        stream = wrapped.logs(stream=True, follow=True)
        follower = threading.Thread(target=forward, args=(stream,), name=f"follow-{handle.image}", daemon=True)
        follower.start()
        handle._log_follower = follower
