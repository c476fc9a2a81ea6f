"""Shared fixtures: applications wired to an in-memory SQLite database or to the memory stores."""
import pytest
from fastapi.testclient import TestClient

from taskapi.config import Settings
from taskapi.main import create_app
from taskapi.security import TokenService
from taskapi.services import AuthService, CategoryService, TaskService
from taskapi.stores import MemoryCategoryStore, MemoryDatabase, MemoryTaskStore, MemoryUserStore

API = "/api/v1"
PASSWORD = "StrongP@ssw0rd1"


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def app():
    return create_app(make_settings())


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def memory_client():
    with TestClient(create_app(make_settings(skip_db_connection=True))) as test_client:
        yield test_client


def register(client, email="a@x.com", password=PASSWORD, first_name="Alice", last_name="Smith"):
    response = client.post(f"{API}/auth/register", json={
        "email": email,
        "password": password,
        "firstName": first_name,
        "lastName": last_name,
    })
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(client, email="a@x.com"):
    token = register(client, email=email)["accessToken"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    return auth_headers(client, "alice@mail.com")


@pytest.fixture
def bob(client):
    return auth_headers(client, "bob@mail.com")


# --- Service-level fixtures --------------------------------------------------

@pytest.fixture
def memory_db():
    return MemoryDatabase()


@pytest.fixture
def token_service():
    return TokenService("unit-secret", expire_minutes=5)


@pytest.fixture
def auth_service(memory_db, token_service):
    return AuthService(MemoryUserStore(memory_db), token_service, bcrypt_rounds=4)


@pytest.fixture
def category_service(memory_db):
    return CategoryService(MemoryCategoryStore(memory_db))


@pytest.fixture
def task_service(memory_db):
    return TaskService(MemoryTaskStore(memory_db), MemoryCategoryStore(memory_db))
