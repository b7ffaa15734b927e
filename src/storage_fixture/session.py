"""Session initialization against a resolved Elasticsearch endpoint.

`SessionInitializer.try_initialize()` answers one question: can a storage
client built for this endpoint pass its health check? It reports the answer
as an `InitResult` and leaves the retry decision to the caller.
"""

import logging

import attrs

from .clients.decorators import ClientCustomizer, compose, logging_decorator, raw_content_decorator
from .clients.elasticsearch import ElasticsearchStorage, StorageBuilder
from .clients.mixins import LoggerMixin
from .config import FixtureConfig
from .exceptions import HealthCheckError

# Verbosity of the debug decorators
DEBUG_LOG_LEVEL = logging.WARNING


def debug_client_customizer(level: int = DEBUG_LOG_LEVEL) -> ClientCustomizer:
    """Request/response logging followed by raw content logging, both at `level`."""
    return compose(
        logging_decorator(level=level, failure_level=level),
        raw_content_decorator(level=level),
    )


@attrs.define(frozen=True, slots=True)
class InitResult:
    """Outcome of `SessionInitializer.try_initialize`.

    Attributes:
        error: The health check failure, or None on success.
    """

    error: HealthCheckError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "InitResult":
        return cls()

    @classmethod
    def failure(cls, error: HealthCheckError) -> "InitResult":
        return cls(error=error)


@attrs.define(frozen=True, slots=True)
class SessionInitializer(LoggerMixin):
    """Builds a storage client for an endpoint and health-checks it.

    Attributes:
        timeout_s: Per-request timeout of the built clients.
    """

    timeout_s: float = 10.0

    @classmethod
    def from_config(cls, config: FixtureConfig) -> "SessionInitializer":
        return cls(timeout_s=config.health_timeout_s)

    def compute_storage_builder(self, endpoint: str, index: str, debug: bool = False) -> StorageBuilder:
        """Describe the storage client the fixture hands out.

        Args:
            endpoint: Base URL of the instance.
            index: Target index.
            debug: Install the request/response and raw content decorators.

        Returns:
            StorageBuilder with a single host and flush-on-writes enabled.
        """
        return StorageBuilder(
            hosts=[endpoint],
            index=index,
            flush_on_writes=True,
            client_customizer=debug_client_customizer() if debug else None,
            timeout_s=self.timeout_s,
        )

    def try_initialize(self, endpoint: str, index: str, debug: bool = False) -> InitResult:
        """Build a client for `endpoint`, health-check it, and close it.

        The client is closed before returning whatever the outcome; no client
        outlives this call.

        Args:
            endpoint: Base URL of the instance.
            index: Target index.
            debug: Install the logging decorators on the client.

        Returns:
            InitResult; on failure it carries a HealthCheckError whose cause
            is the check's error.
        """
        builder = self.compute_storage_builder(endpoint, index, debug)
        try:
            storage = builder.build()
        except Exception as e:
            return InitResult.failure(HealthCheckError(f"Couldn't build storage for {endpoint}: {e}", e))

        try:
            check = storage.check()
        except Exception as e:
            return InitResult.failure(HealthCheckError(f"Health check against {endpoint} raised: {e}", e))
        finally:
            self._close(storage, endpoint)

        if not check.ok:
            message = str(check.error) if check.error is not None else f"Health check against {endpoint} failed"
            self._logger.debug("Health check failed", extra={"endpoint": endpoint, "index": index})
            return InitResult.failure(HealthCheckError(message, check.error))

        self._logger.debug("Health check passed", extra={"endpoint": endpoint, "index": index})
        return InitResult.success()

    def _close(self, storage: ElasticsearchStorage, endpoint: str) -> None:
        try:
            storage.close()
        except Exception as e:
            self._logger.warning(
                "Couldn't close storage for %s: %s", endpoint, e, exc_info=True, extra={"endpoint": endpoint}
            )
