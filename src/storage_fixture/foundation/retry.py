"""Bounded polling utilities using tenacity.

This module provides the deadline-based wait used for container readiness,
plus the retry logging callback shared with it.

## Components

### wait_until
Calls a probe repeatedly with a fixed interval until it returns or a hard
deadline elapses, then re-raises the last error.

### create_retry_logger
Factory function to create retry logging callbacks for tenacity's
`before_sleep` hook.

## Usage

```python
from storage_fixture.foundation.retry import wait_until

wait_until(
    lambda: probe("http://localhost:9200/"),
    timeout_s=60,
    interval_s=0.5,
    retry_on=(httpx.HTTPError,),
)
```
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from tenacity import Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

T = TypeVar("T")


def create_retry_logger(
    logger: logging.Logger,
    message: str = "Operation failed, retrying",
    level: int = logging.WARNING,
    extra: dict[str, Any] | None = None,
) -> Callable[[Any], None]:
    """Create a retry logging callback for tenacity.

    This factory creates a callback function suitable for tenacity's
    `before_sleep` parameter. It logs retry attempts with structured
    context including attempt number, wait time, and error type.

    Args:
        logger: Logger instance to use for logging.
        message: Log message.
        level: Log level for each retry line.
        extra: Static context merged into every log record.

    Returns:
        Callback function for tenacity's before_sleep parameter.
    """

    def log_retry(retry_state: Any) -> None:
        if retry_state.outcome is None or not retry_state.outcome.failed:
            return

        exc = retry_state.outcome.exception()
        wait_time = retry_state.next_action.sleep if retry_state.next_action else 0

        record_extra: dict[str, Any] = dict(extra or {})
        record_extra.update(
            {
                "attempt": retry_state.attempt_number,
                "wait_seconds": round(wait_time, 2),
                "error_type": type(exc).__name__,
            }
        )
        logger.log(level, message, extra=record_extra)

    return log_retry


def wait_until(
    probe: Callable[[], T],
    *,
    timeout_s: float,
    interval_s: float,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    logger: logging.Logger | None = None,
    message: str = "Not ready yet, polling again",
    extra: dict[str, Any] | None = None,
) -> T:
    """Poll `probe` until it returns, or re-raise its last error at the deadline.

    Args:
        probe: Zero-argument callable; raising one of `retry_on` means
            "not ready yet".
        timeout_s: Hard deadline in seconds, measured from the first call.
        interval_s: Fixed sleep between attempts.
        retry_on: Exception types that trigger another attempt. Anything else
            propagates immediately.
        logger: Optional logger; each retry is logged at DEBUG.
        message: Message for the retry log lines.
        extra: Static context for the retry log lines.

    Returns:
        Whatever `probe` returned on its first successful call.

    Raises:
        BaseException: The last exception raised by `probe`.
    """
    before_sleep = None
    if logger is not None:
        before_sleep = create_retry_logger(logger, message, level=logging.DEBUG, extra=extra)

    retrying = Retrying(
        stop=stop_after_delay(timeout_s),
        wait=wait_fixed(interval_s),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep,
        reraise=True,
    )
    return retrying(probe)
