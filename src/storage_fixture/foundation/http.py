"""Shared HTTP utilities for retry logic and session management.

This module provides the requests session used by the storage client so that
health checks and fixture helpers share the same retry and pooling behavior.
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

# Health checks must fail fast so the fixture can fall back to localhost.
DEFAULT_MAX_RETRIES = 0
DEFAULT_BACKOFF_FACTOR = 0.5
DEFAULT_STATUS_FORCELIST = [429, 502, 503, 504]
DEFAULT_ALLOWED_METHODS = ["GET", "HEAD", "PUT", "POST", "DELETE"]


def create_retry_session(
    max_retries: int = DEFAULT_MAX_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    status_forcelist: list[int] | None = None,
    allowed_methods: list[str] | None = None,
) -> requests.Session:
    """Create a requests session with retry logic for transient failures.

    Args:
        max_retries: Maximum number of retry attempts (default: 0).
        backoff_factor: Base backoff time in seconds (default: 0.5).
        status_forcelist: HTTP status codes that should trigger a retry
            (default: [429, 502, 503, 504]).
        allowed_methods: HTTP methods that are allowed to retry
            (default: GET, HEAD, PUT, POST, DELETE).

    Returns:
        Configured requests.Session with retry strategy.

    Example:
        ```python
        from storage_fixture.foundation.http import create_retry_session

        session = create_retry_session(max_retries=2)
        response = session.get("http://localhost:9200/_cluster/health", timeout=5)
        ```

    Note:
        The session mounts retry adapters for both HTTP and HTTPS protocols.
        Response hooks installed later by client customizers live on the
        session, not on the adapters.
    """
    if status_forcelist is None:
        status_forcelist = DEFAULT_STATUS_FORCELIST
    if allowed_methods is None:
        allowed_methods = DEFAULT_ALLOWED_METHODS

    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=allowed_methods,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
