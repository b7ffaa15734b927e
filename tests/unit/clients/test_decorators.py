"""Unit tests for storage_fixture.clients.decorators.

Requests go through a real `requests.Session` whose transport adapter is
mocked, so the send wrapper and the response hooks both run without network
access.

Run with: pytest tests/unit/clients/test_decorators.py
"""

import logging
from unittest.mock import MagicMock

import pytest
import requests
from requests.adapters import HTTPAdapter

from storage_fixture.clients.decorators import (
    MAX_LOGGED_CONTENT,
    compose,
    logging_decorator,
    raw_content_decorator,
)
from storage_fixture.session import debug_client_customizer

BASE_URL = "http://localhost:9200"
URL = f"{BASE_URL}/zipkin-test/_doc"
LOGGER = "storage_fixture.clients.decorators"


def _session(*customizers, status_code: int = 201, content: bytes = b'{"result":"created"}', error=None):
    """Session whose transport answers with one canned response or raises `error`."""

    def send(request: requests.PreparedRequest, **kwargs) -> requests.Response:
        if error is not None:
            raise error
        response = requests.Response()
        response.request = request
        response.url = request.url
        response.status_code = status_code
        response.encoding = "utf-8"
        response._content = content
        return response

    adapter = MagicMock(spec=HTTPAdapter)
    adapter.send.side_effect = send
    session = requests.Session()
    session.mount(BASE_URL, adapter)
    for customizer in customizers:
        customizer(session)
    return session


def _records(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name == LOGGER]


def _messages(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in _records(caplog)]


class TestLoggingDecorator:
    """Test suite for logging_decorator."""

    def test_logs_request_line_then_status(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(logging_decorator(level=logging.INFO))

        with caplog.at_level(logging.INFO, logger=LOGGER):
            session.post(URL, json={"traceId": "1"})

        assert _messages(caplog) == [f"POST {URL}", f"POST {URL} -> 201"]
        status_record = _records(caplog)[-1]
        assert status_record.levelno == logging.INFO
        assert status_record.status_code == 201
        assert status_record.elapsed_ms >= 0

    def test_non_2xx_uses_failure_level(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(logging_decorator(level=logging.DEBUG, failure_level=logging.ERROR), status_code=500)

        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            session.get(URL)

        assert [r.levelno for r in _records(caplog)] == [logging.DEBUG, logging.ERROR]

    def test_connection_error_is_logged_and_reraised(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that a refused connection still leaves a trace in the log.

        **Why this test is important:**
          - An unreachable endpoint is the most common health check failure
          - No response arrives, so response hooks alone log nothing

        **What it tests:**
          - The request line is logged before sending
          - The transport error is logged at the failure level
          - The original exception still propagates
        """
        error = requests.ConnectionError("connection refused")
        session = _session(logging_decorator(level=logging.INFO, failure_level=logging.WARNING), error=error)
        health_url = f"{BASE_URL}/_cluster/health"

        with caplog.at_level(logging.INFO, logger=LOGGER):
            with pytest.raises(requests.ConnectionError):
                session.get(health_url)

        assert _messages(caplog) == [f"GET {health_url}", f"GET {health_url} failed: connection refused"]
        failure = _records(caplog)[-1]
        assert failure.levelno == logging.WARNING
        assert failure.error_type == "ConnectionError"

    def test_custom_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(logging_decorator(log=logging.getLogger("es.debug")))

        with caplog.at_level(logging.WARNING, logger="es.debug"):
            session.get(URL)

        assert {r.name for r in caplog.records} == {"es.debug"}


class TestRawContentDecorator:
    """Test suite for raw_content_decorator."""

    def test_logs_request_and_response_content(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(raw_content_decorator())

        with caplog.at_level(logging.WARNING, logger=LOGGER):
            session.post(URL, json={"traceId": "1"})

        messages = _messages(caplog)
        assert len(messages) == 2
        assert messages[0].startswith("request content POST")
        assert '"traceId"' in messages[0]
        assert messages[1].endswith('{"result":"created"}')

    def test_request_content_logged_even_without_response(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(raw_content_decorator(), error=requests.Timeout("read timed out"))

        with caplog.at_level(logging.WARNING, logger=LOGGER):
            with pytest.raises(requests.Timeout):
                session.post(URL, json={"traceId": "1"})

        messages = _messages(caplog)
        assert len(messages) == 1
        assert messages[0].startswith("request content POST")

    def test_skips_empty_request_body(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(raw_content_decorator())

        with caplog.at_level(logging.WARNING, logger=LOGGER):
            session.get(URL)

        messages = _messages(caplog)
        assert len(messages) == 1
        assert messages[0].startswith("response content")

    def test_truncates_large_content(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(raw_content_decorator(), content=b"x" * (MAX_LOGGED_CONTENT * 2))

        with caplog.at_level(logging.WARNING, logger=LOGGER):
            session.get(URL)

        (message,) = _messages(caplog)
        assert message.endswith("...(truncated)")
        assert message.count("x") == MAX_LOGGED_CONTENT


class TestCompose:
    """Test suite for compose."""

    def test_applies_in_order(self) -> None:
        calls: list[str] = []

        compose(lambda s: calls.append("first"), lambda s: calls.append("second"))(requests.Session())

        assert calls == ["first", "second"]

    def test_debug_customizer_logs_in_installation_order(self, caplog: pytest.LogCaptureFixture) -> None:
        session = _session(debug_client_customizer())

        with caplog.at_level(logging.WARNING, logger=LOGGER):
            session.post(URL, json={"traceId": "1"})

        messages = _messages(caplog)
        assert messages[0] == f"POST {URL}"
        assert messages[1].startswith("request content POST")
        assert messages[2] == f"POST {URL} -> 201"
        assert messages[3].startswith("response content POST")

    def test_send_is_wrapped_once_per_session(self) -> None:
        session = requests.Session()

        compose(logging_decorator(), raw_content_decorator())(session)

        send_hooks = session._send_hooks
        assert session.send.__name__ == "logged_send"
        assert len(send_hooks["request"]) == 2
        assert len(send_hooks["error"]) == 1
        assert len(session.hooks["response"]) == 2
