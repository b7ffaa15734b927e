"""Exception hierarchy for the storage fixture.

## Exception Hierarchy

All fixture exceptions inherit from `FixtureError`:

- `ContainerStartError`: launching or readiness-probing the container failed
- `ContainerNotReadyError`: the readiness probe answered with a non-2xx status
- `HealthCheckError`: the storage client's health check did not pass
- `ResourceReleaseError`: a registered resource failed to release on teardown
- `ContainerStopError`: stopping the container failed
- `FixtureStateError`: a lifecycle method was called in the wrong state

## Policies

```python
ContainerStartError    → absorbed by ContainerManager.start, logged as warning
HealthCheckError       → one local retry if a container was running, else raised
ResourceReleaseError   → collected and logged by teardown, never raised
ContainerStopError     → logged by ContainerManager.stop, never raised
```
"""

from typing import Any

# Re-export UpstreamError from foundation for compatibility
from .foundation.exceptions import UpstreamError  # noqa: F401


class FixtureError(Exception):
    """Base exception class for all fixture-related errors."""


class ContainerStartError(FixtureError):
    """Exception raised when the container cannot be launched or never becomes ready.

    Examples:
        - Docker daemon is not reachable
        - The image cannot be pulled
        - `GET /` did not succeed before the readiness deadline
    """


class ContainerNotReadyError(ContainerStartError):
    """Exception raised when the readiness probe gets a non-2xx answer."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"Readiness probe {url} returned HTTP {status_code}")
        self.url = url
        self.status_code = status_code


class HealthCheckError(FixtureError):
    """Exception raised when the storage health check does not pass.

    Attributes:
        message: Human readable reason, taken from the check's error.
        cause: The underlying error reported by the check, if any.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ResourceReleaseError(FixtureError):
    """Exception recorded when a registered resource fails to release.

    Attributes:
        resource: The registered resource (or callback) that failed.
        cause: The exception it raised.
    """

    def __init__(self, resource: Any, cause: BaseException) -> None:
        super().__init__(f"error closing {resource!r}: {cause}")
        self.resource = resource
        self.cause = cause


class ContainerStopError(FixtureError):
    """Exception recorded when stopping the container fails."""


class FixtureStateError(FixtureError):
    """Exception raised when a lifecycle method is called out of order.

    Examples:
        - `setup()` called on a fixture that is already READY
        - `setup()` called again after teardown
    """
