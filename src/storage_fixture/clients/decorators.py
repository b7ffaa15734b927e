"""Logging decorators for the storage client's HTTP session.

A client customizer is a callable that receives the `requests.Session` of a
freshly built `ElasticsearchStorage` and decorates it. The decorators here do
so in two places:

- `Session.send` is wrapped, so the outgoing request is logged before it is
  sent and transport errors (connection refused, timeouts) are logged before
  they propagate
- a `requests` response hook logs whatever comes back

## Usage

```python
from storage_fixture.clients.decorators import compose, logging_decorator, raw_content_decorator

customizer = compose(logging_decorator(logging.WARNING), raw_content_decorator())
storage = StorageBuilder(hosts=["http://localhost:9200"], client_customizer=customizer).build()
```
"""

import logging
from collections.abc import Callable
from typing import Any

import requests

ClientCustomizer = Callable[[requests.Session], None]

logger = logging.getLogger(__name__)

# Bodies are truncated so a bulk request cannot flood the log.
MAX_LOGGED_CONTENT = 4096


def _truncate(content: str) -> str:
    if len(content) <= MAX_LOGGED_CONTENT:
        return content
    return content[:MAX_LOGGED_CONTENT] + "...(truncated)"


def _decode_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return str(body)


def _send_hooks(session: requests.Session) -> dict[str, list[Callable[..., None]]]:
    """Return the session's `request`/`error` hook lists, wrapping `send` on first use.

    `request` hooks get the prepared request before it is sent. `error` hooks
    get the request and the transport exception before it propagates. Both
    run in registration order, like `session.hooks["response"]`.
    """
    existing = getattr(session, "_send_hooks", None)
    if existing is not None:
        return existing

    hooks: dict[str, list[Callable[..., None]]] = {"request": [], "error": []}
    send = session.send

    def logged_send(request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        for hook in hooks["request"]:
            hook(request)
        try:
            return send(request, **kwargs)
        except requests.RequestException as e:
            for hook in hooks["error"]:
                hook(request, e)
            raise

    session.send = logged_send  # type: ignore[method-assign]
    session._send_hooks = hooks  # type: ignore[attr-defined]
    return hooks


def logging_decorator(
    level: int = logging.WARNING,
    failure_level: int | None = None,
    log: logging.Logger | None = None,
) -> ClientCustomizer:
    """Build a customizer that logs each request, its response status, or its transport error.

    Args:
        level: Level for the request line and successful exchanges.
        failure_level: Level for non-2xx responses and transport errors;
            defaults to `level`.
        log: Logger to write to; defaults to this module's logger.

    Returns:
        ClientCustomizer wrapping `send` and installing a response hook.
    """
    target = log or logger
    failed_at = level if failure_level is None else failure_level

    def before(request: requests.PreparedRequest) -> None:
        target.log(
            level,
            "%s %s",
            request.method,
            request.url,
            extra={"method": request.method, "url": request.url},
        )

    def on_error(request: requests.PreparedRequest, error: requests.RequestException) -> None:
        target.log(
            failed_at,
            "%s %s failed: %s",
            request.method,
            request.url,
            error,
            extra={"method": request.method, "url": request.url, "error_type": type(error).__name__},
        )

    def hook(response: requests.Response, *args: Any, **kwargs: Any) -> None:
        request = response.request
        target.log(
            level if response.ok else failed_at,
            "%s %s -> %s",
            request.method,
            request.url,
            response.status_code,
            extra={
                "method": request.method,
                "url": request.url,
                "status_code": response.status_code,
                "elapsed_ms": round(response.elapsed.total_seconds() * 1000, 1),
            },
        )

    def customize(session: requests.Session) -> None:
        send_hooks = _send_hooks(session)
        send_hooks["request"].append(before)
        send_hooks["error"].append(on_error)
        session.hooks["response"].append(hook)

    return customize


def raw_content_decorator(level: int = logging.WARNING, log: logging.Logger | None = None) -> ClientCustomizer:
    """Build a customizer that logs raw request and response bodies.

    Args:
        level: Level for the content lines.
        log: Logger to write to; defaults to this module's logger.

    Returns:
        ClientCustomizer wrapping `send` and installing a response hook.
    """
    target = log or logger

    def before(request: requests.PreparedRequest) -> None:
        request_body = _decode_body(request.body)
        if request_body:
            target.log(level, "request content %s %s: %s", request.method, request.url, _truncate(request_body))

    def hook(response: requests.Response, *args: Any, **kwargs: Any) -> None:
        request = response.request
        target.log(level, "response content %s %s: %s", request.method, request.url, _truncate(response.text))

    def customize(session: requests.Session) -> None:
        _send_hooks(session)["request"].append(before)
        session.hooks["response"].append(hook)

    return customize


def compose(*customizers: ClientCustomizer) -> ClientCustomizer:
    """Chain customizers; they are applied in the order given."""

    def customize(session: requests.Session) -> None:
        for customizer in customizers:
            customizer(session)

    return customize
