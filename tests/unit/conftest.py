"""Shared fixtures for unit tests.

This module provides mock containers, managers, initializers and storage
clients so that no test touches Docker or the network.
"""

# pylint: disable=redefined-outer-name
# Pytest fixtures intentionally redefine fixture names - this is expected behavior

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
import requests

from storage_fixture.clients.elasticsearch import CheckResult, ElasticsearchStorage
from storage_fixture.container import ContainerHandle, ContainerManager
from storage_fixture.session import SessionInitializer

IMAGE = "docker.elastic.co/elasticsearch/elasticsearch:7.17.22"
CONTAINER_URL = "http://127.0.0.1:32768"
LOCAL_URL = "http://localhost:9200"

# =============================================================================
# Container Fixtures
# =============================================================================


@pytest.fixture
def mock_container() -> MagicMock:
    """Create a mock testcontainers DockerContainer.

    The builder methods return the same mock, the container is published on
    127.0.0.1:32768, and Docker reports it as running.

    Returns:
        MagicMock: Mock DockerContainer.
    """
    container = MagicMock(name="DockerContainer")
    container.with_exposed_ports.return_value = container
    container.with_env.return_value = container
    container.get_container_host_ip.return_value = "127.0.0.1"
    container.get_exposed_port.return_value = "32768"
    container.get_wrapped_container.return_value.status = "running"
    return container


@pytest.fixture
def container_factory(mock_container: MagicMock) -> MagicMock:
    """Create a factory that returns `mock_container` for any image."""
    return MagicMock(name="container_factory", return_value=mock_container)


@pytest.fixture
def container_handle(mock_container: MagicMock) -> ContainerHandle:
    """Create a handle around the running mock container."""
    return ContainerHandle(image=IMAGE, container=mock_container)


# =============================================================================
# Lifecycle Collaborator Fixtures
# =============================================================================


@pytest.fixture
def mock_manager() -> MagicMock:
    """Create a mock ContainerManager resolving URLs like the real one.

    Returns:
        MagicMock: `resolve_base_url` maps any handle to CONTAINER_URL and
        None to LOCAL_URL.
    """
    manager = MagicMock(spec=ContainerManager)
    manager.resolve_base_url.side_effect = lambda handle: CONTAINER_URL if handle is not None else LOCAL_URL
    return manager


@pytest.fixture
def mock_initializer() -> MagicMock:
    """Create a mock SessionInitializer."""
    return MagicMock(spec=SessionInitializer)


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock requests.Session for the storage client.

    Returns:
        MagicMock: A mock requests.Session with get/post/delete methods.
    """
    return MagicMock(spec=requests.Session)


@pytest.fixture
def healthy_storage() -> MagicMock:
    """Create a mock storage client whose health check passes."""
    storage = MagicMock(spec=ElasticsearchStorage)
    storage.check.return_value = CheckResult.passed()
    return storage


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Provide a factory for mock requests.Response objects.

    Returns:
        Callable taking status_code, json_body and text.
    """

    def factory(status_code: int = 200, json_body: object = None, text: str = "") -> MagicMock:
        response = MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.text = text
        response.json.return_value = {} if json_body is None else json_body
        return response

    return factory
