from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app

ADMIN_EMAIL = "admin@reciclaje.com"
ADMIN_PASSWORD = "admin123"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path}/reciclaje.db",
        bcrypt_rounds=4,
        jwt_secret="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def user_headers(client: TestClient) -> dict[str, str]:
    response = client.post(
        "/api/auth/registro",
        json={
            "nombre": "Operador",
            "email": "operador@reciclaje.com",
            "password": "secreto1",
            "confirmarPassword": "secreto1",
        },
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def material(client: TestClient, admin_headers: dict[str, str]) -> dict:
    response = client.post(
        "/api/materiales",
        json={
            "nombre": "Cobre Prueba",
            "categoria": "Pruebas",
            "precio_ordinario": 20000,
            "precio_camion": 21000,
            "precio_noche": 22000,
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
