"""Tests for health endpoints."""

from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_without_database(client: TestClient) -> None:
    """Not ready until a Cassandra session exists."""
    response = client.get("/health/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_readiness(app: FastAPI, client: TestClient) -> None:
    app.state.cassandra_session = AsyncMock()
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["environment"] == "testing"
    assert "debug" in data


def test_health(app: FastAPI, client: TestClient) -> None:
    """Test the general health endpoint."""
    app.state.cassandra_session = AsyncMock()
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "learnhub"
    assert data["cassandra"] == "ok"
    assert "version" in data


def test_health_degraded_when_query_fails(app: FastAPI, client: TestClient) -> None:
    session = AsyncMock()
    session.aexecute.side_effect = RuntimeError("no hosts available")
    app.state.cassandra_session = session

    data = client.get("/health").json()
    assert data["status"] == "degraded"
    assert data["cassandra"] == "error"


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "LearnHub" in data["message"]
    assert "version" in data


def test_request_id_header(client: TestClient) -> None:
    response = client.get("/health/live", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
