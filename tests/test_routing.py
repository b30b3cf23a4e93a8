"""Tests for router collection and the application factory."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chat_relay import application
from chat_relay.managers.session_registry import SessionRegistry
from chat_relay.routing import collect_subrouters


@pytest.mark.parametrize("path", ["/health", "/metrics", "/online"])
def test_collected_http_endpoints_are_served(client, path):
    """Test every collected HTTP module answers on its path."""
    assert client.get(path).status_code == 200


def test_collected_push_endpoint_is_served(client):
    """Test the push route is reachable and reports an offline user."""
    response = client.post("/online/ghost/messages", json={"message": "hi"})

    assert response.status_code == 404


def test_collected_relay_endpoint_is_websocket(client):
    """Test the relay path accepts WebSocket connections."""
    with client.websocket_connect("/websocket/u1") as websocket:
        assert "u1" in websocket.receive_text()


def test_collect_subrouters_mounts_on_a_bare_app():
    """Test the collected router serves its routes without the factory."""
    app = FastAPI()
    app.state.session_registry = SessionRegistry()
    app.include_router(collect_subrouters())

    with TestClient(app) as test_client:
        assert test_client.get("/online").json() == {"count": 0, "user_ids": []}
        with test_client.websocket_connect("/websocket/u1") as websocket:
            websocket.receive_text()
            assert test_client.get("/online").json()["count"] == 1


def test_application_owns_one_registry_per_app():
    """Test each application gets its own registry unless one is given."""
    shared = SessionRegistry()

    assert application().state.session_registry is not (
        application().state.session_registry
    )
    assert application(registry=shared).state.session_registry is shared
