"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the session registry, connection
handlers, mock transports and the FastAPI application.
"""

import pytest
from fastapi.testclient import TestClient

from chat_relay import application
from chat_relay.handlers.connection_handler import ConnectionHandler
from chat_relay.managers.session_registry import SessionRegistry
from tests.mocks.transport_mocks import create_mock_transport


@pytest.fixture
def registry():
    """
    Provides an empty SessionRegistry.

    Returns:
        SessionRegistry: Fresh registry instance
    """
    return SessionRegistry()


@pytest.fixture
def open_handler(registry):
    """
    Factory fixture opening a ConnectionHandler on the shared registry.

    The handler's confirmation send is cleared from the transport mock so
    tests only see frames sent afterwards.

    Args:
        registry: Fixture providing the SessionRegistry

    Returns:
        Callable: async factory taking a user id (and optional transport)
    """

    async def _open(user_id: str, transport=None) -> ConnectionHandler:
        handler = ConnectionHandler(user_id, registry)
        transport = transport or create_mock_transport()
        await handler.on_open(transport)
        transport.send_text.reset_mock()
        return handler

    return _open


@pytest.fixture
def app(registry):
    """
    Create the application wired to the registry fixture.

    Args:
        registry: Fixture providing the SessionRegistry

    Returns:
        FastAPI: FastAPI application instance.
    """
    return application(registry=registry)


@pytest.fixture
def client(app):
    """
    Create a test client for the FastAPI application.

    The client is entered as a context manager so the lifespan runs and
    every WebSocket session shares one event loop.

    Args:
        app: FastAPI application fixture.

    Yields:
        TestClient: FastAPI test client instance.
    """
    with TestClient(app) as test_client:
        yield test_client
