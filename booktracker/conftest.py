import pytest
from fastapi.testclient import TestClient

from .config import Settings
from .main import create_app

TEST_SECRET = "test-secret"


@pytest.fixture(scope="function")
def settings():
    return Settings(
        DATABASE_URL="sqlite:///:memory:",
        JWT_SECRET=TEST_SECRET,
        BCRYPT_ROUNDS=4,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture(scope="function")
def app(settings):
    return create_app(settings)


@pytest.fixture(scope="function")
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register_and_login(client):
    def _register_and_login(username, email, password="password123"):
        res = client.post(
            "/register",
            json={"username": username, "email": email, "password": password},
        )
        assert res.status_code == 201
        login_res = client.post("/login", json={"email": email, "password": password})
        assert login_res.status_code == 200
        return {"Authorization": f"Bearer {login_res.json()['token']}"}

    return _register_and_login
