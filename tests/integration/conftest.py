"""Fixtures for HTTP API tests."""
import pytest
from fastapi.testclient import TestClient

from agende import config
from agende.api.dependencies import get_db_engine


@pytest.fixture
def app(engine):
    """FastAPI app wired to the per-test in-memory database."""
    from agende.api_server import app as fastapi_app

    fastapi_app.dependency_overrides[get_db_engine] = lambda: engine
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Create FastAPI test client (lifespan not started)."""
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    response = client.post(
        "/api/v1/auth/login",
        json={"username": config.ADMIN_USERNAME, "password": config.ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return {"X-Session-Token": response.json()["token"]}


@pytest.fixture
def procedure_ids(client, auth_headers):
    """Catalog with a 60-minute and a 30-minute procedure."""
    makeup = client.post(
        "/api/v1/procedures",
        json={"name": "Maquiagem Social", "duration": 60, "price": 90.0},
        headers=auth_headers
    ).json()
    brows = client.post(
        "/api/v1/procedures",
        json={"name": "Design de Sobrancelhas", "duration": 30, "price": 25.0},
        headers=auth_headers
    ).json()
    return {"makeup": makeup["id"], "brows": brows["id"]}
