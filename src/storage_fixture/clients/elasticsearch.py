"""Elasticsearch storage client used by the fixture.

This module provides a small Elasticsearch client: enough to health-check an
instance, write a document, and drop an index. It is what the fixture builds
to decide whether an endpoint is usable, and what tests receive to talk to
the provisioned instance.

## Usage

```python
from storage_fixture.clients.elasticsearch import StorageBuilder

storage = StorageBuilder(hosts=["http://localhost:9200"], index="zipkin-test").build()
try:
    result = storage.check()
    if not result.ok:
        raise result.error
finally:
    storage.close()
```

## Design

- `StorageBuilder` is an immutable description of the client; `build()`
  creates a new client with its own HTTP session every time
- `check()` never raises; it reports problems through `CheckResult`
- Request failures in `index_document()`/`clear()` raise `UpstreamError`
"""

from collections.abc import Sequence
from typing import Any

import attrs
import requests

from ..foundation.exceptions import UpstreamError
from ..foundation.http import DEFAULT_MAX_RETRIES, create_retry_session
from .decorators import ClientCustomizer
from .mixins import LoggerMixin

DEFAULT_HOST = "http://localhost:9200"


@attrs.define(frozen=True, slots=True)
class CheckResult:
    """Outcome of a storage health check.

    Attributes:
        ok: True when the instance answered and the cluster is not red.
        error: Why the check failed; None when `ok` is True.
    """

    ok: bool
    error: BaseException | None = None

    @classmethod
    def passed(cls) -> "CheckResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, error: BaseException) -> "CheckResult":
        return cls(ok=False, error=error)


def _to_hosts(hosts: Sequence[str] | str) -> tuple[str, ...]:
    if isinstance(hosts, str):
        hosts = [hosts]
    return tuple(host.rstrip("/") for host in hosts)


@attrs.define(frozen=True, slots=True)
class StorageBuilder:
    """Immutable configuration for an `ElasticsearchStorage`.

    Attributes:
        hosts: Base URLs of the instance, tried in order by `check()`.
        index: Index the client reads and writes.
        flush_on_writes: Refresh the index on every write so documents are
            searchable as soon as the write returns.
        client_customizer: Optional callable decorating the HTTP session
            (see `clients.decorators`).
        timeout_s: Per-request timeout in seconds.
        max_retries: Retries for transient HTTP failures.
    """

    hosts: tuple[str, ...] = attrs.field(default=(DEFAULT_HOST,), converter=_to_hosts)
    index: str = "zipkin"
    flush_on_writes: bool = False
    client_customizer: ClientCustomizer | None = None
    timeout_s: float = 10.0
    max_retries: int = DEFAULT_MAX_RETRIES

    @hosts.validator
    def _check_hosts(self, attribute: attrs.Attribute, value: tuple[str, ...]) -> None:
        if not value:
            raise ValueError("at least one host is required")

    def build(self) -> "ElasticsearchStorage":
        """Create a new client with its own session.

        Returns:
            ElasticsearchStorage; the caller owns it and must `close()` it.
        """
        session = create_retry_session(max_retries=self.max_retries)
        if self.client_customizer is not None:
            self.client_customizer(session)
        return ElasticsearchStorage(
            hosts=self.hosts,
            index=self.index,
            flush_on_writes=self.flush_on_writes,
            timeout_s=self.timeout_s,
            session=session,
        )


@attrs.define(frozen=False, slots=True)
class ElasticsearchStorage(LoggerMixin):
    """Client for a single Elasticsearch index.

    Attributes:
        hosts: Base URLs of the instance.
        index: Target index.
        flush_on_writes: Whether writes pass `refresh=true`.
        timeout_s: Per-request timeout in seconds.
        session: HTTP session, already decorated by the builder.

    Note:
        This class is not frozen because `close()` flips its closed flag.
    """

    hosts: tuple[str, ...] = attrs.field(converter=_to_hosts)
    index: str
    flush_on_writes: bool = False
    timeout_s: float = 10.0
    _session: requests.Session = attrs.field(factory=create_retry_session)
    _closed: bool = attrs.field(init=False, default=False)

    @property
    def session(self) -> requests.Session:
        """Get the underlying requests session."""
        return self._session

    @property
    def closed(self) -> bool:
        return self._closed

    def check(self) -> CheckResult:
        """Check that the instance is reachable and its cluster is not red.

        Each host is tried in order; the first healthy one passes the check.

        Returns:
            CheckResult; on failure its error describes the last host tried.
        """
        last_error: BaseException = UpstreamError("no hosts configured")
        for host in self.hosts:
            url = f"{host}/_cluster/health"
            try:
                response = self._session.get(url, timeout=self.timeout_s)
            except requests.RequestException as e:
                last_error = UpstreamError(f"{url} unreachable: {e}")
                last_error.__cause__ = e
                continue

            if not response.ok:
                last_error = UpstreamError(f"{url} returned HTTP {response.status_code}: {response.text[:200]}")
                continue

            try:
                status = response.json().get("status")
            except ValueError as e:
                last_error = UpstreamError(f"{url} returned invalid JSON: {e}")
                continue

            if status == "red":
                last_error = UpstreamError(f"cluster status is red at {host}")
                continue

            self._logger.debug("Health check passed", extra={"host": host, "cluster_status": status})
            return CheckResult.passed()

        return CheckResult.failed(last_error)

    def index_document(self, document: dict[str, Any], doc_id: str | None = None) -> dict[str, Any]:
        """Write one document into the index.

        Args:
            document: JSON-serializable document body.
            doc_id: Optional document id; Elasticsearch generates one if None.

        Returns:
            The parsed Elasticsearch response.

        Raises:
            UpstreamError: If the request fails or returns a non-2xx status.
        """
        url = f"{self.hosts[0]}/{self.index}/_doc"
        if doc_id is not None:
            url = f"{url}/{doc_id}"
        params = {"refresh": "true"} if self.flush_on_writes else None
        try:
            response = self._session.post(url, json=document, params=params, timeout=self.timeout_s)
        except requests.RequestException as e:
            msg = f"Elasticsearch write to {url} failed: {e}"
            raise UpstreamError(msg) from e
        if not response.ok:
            msg = f"Elasticsearch write to {url} returned HTTP {response.status_code}: {response.text[:200]}"
            raise UpstreamError(msg)
        return response.json()

    def clear(self) -> None:
        """Delete the index. A missing index is not an error.

        Raises:
            UpstreamError: If the request fails or returns an unexpected status.
        """
        url = f"{self.hosts[0]}/{self.index}"
        try:
            response = self._session.delete(url, timeout=self.timeout_s)
        except requests.RequestException as e:
            msg = f"Elasticsearch delete of {url} failed: {e}"
            raise UpstreamError(msg) from e
        if response.status_code == 404:
            return
        if not response.ok:
            msg = f"Elasticsearch delete of {url} returned HTTP {response.status_code}: {response.text[:200]}"
            raise UpstreamError(msg)

    def close(self) -> None:
        """Close the HTTP session. Safe to call more than once."""
        if self._closed:
            return
        self._session.close()
        self._closed = True

    def __enter__(self) -> "ElasticsearchStorage":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
