"""
End-to-end flows over HTTP, against the relational store and the in-memory fixture stores.
"""
import pytest
from fastapi.testclient import TestClient

from taskapi.config import Settings
from taskapi.main import create_app
from taskapi.stores.fixtures import DEMO_EMAIL, DEMO_PASSWORD

API = "/api/v1"


def test_register_category_task_complete_stats(client):
    registered = client.post(f"{API}/auth/register", json={
        "email": "a@x.com",
        "password": "StrongP@ssw0rd1",
        "firstName": "Ada",
        "lastName": "Lovelace",
    })
    assert registered.status_code == 201
    headers = {"Authorization": f"Bearer {registered.json()['accessToken']}"}

    work = client.post(f"{API}/categories", json={"name": "Work"}, headers=headers)
    assert work.status_code == 201

    task = client.post(f"{API}/tasks", json={"title": "T1", "categoryId": work.json()["id"]},
                       headers=headers)
    assert task.status_code == 201
    assert task.json()["status"] == "pending"
    assert task.json()["isCompleted"] is False

    done = client.put(f"{API}/tasks/{task.json()['id']}", json={"status": "completed"}, headers=headers)
    assert done.status_code == 200
    assert done.json()["isCompleted"] is True

    stats = client.get(f"{API}/tasks/stats", headers=headers)
    assert stats.status_code == 200
    assert stats.json()["completed"] == 1


def test_login_token_works_like_register_token(client):
    client.post(f"{API}/auth/register", json={
        "email": "a@x.com", "password": "StrongP@ssw0rd1", "firstName": "Ada", "lastName": "Byron",
    })
    login = client.post(f"{API}/auth/login", json={"email": "a@x.com", "password": "StrongP@ssw0rd1"})
    headers = {"Authorization": f"Bearer {login.json()['accessToken']}"}

    assert client.post(f"{API}/tasks", json={"title": "T"}, headers=headers).status_code == 201
    assert client.get(f"{API}/tasks", headers=headers).json()["total"] == 1


def test_api_prefix_is_configurable():
    settings = Settings(database_url="sqlite://", jwt_secret="test-secret", bcrypt_rounds=4, api_prefix="/v2")
    with TestClient(create_app(settings)) as client:
        assert client.get("/v2/health").status_code == 200
        assert client.get("/api/v1/health").status_code == 404


def test_unknown_route_uses_error_envelope(client):
    response = client.get(f"{API}/nowhere")

    assert response.status_code == 404
    assert response.json()["statusCode"] == 404
    assert response.json()["path"] == f"{API}/nowhere"


def test_unexpected_errors_do_not_leak_details(app, alice, monkeypatch):
    from taskapi.services.tasks import TaskService

    def explode(self, owner_id):
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(TaskService, "stats", explode)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get(f"{API}/tasks/stats", headers=alice)

    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error"
    assert "hunter2" not in response.text


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Running without a database
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.fixture
def demo_headers(memory_client):
    response = memory_client.post(f"{API}/auth/login",
                                  json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


def test_memory_mode_reports_storage(memory_client):
    assert memory_client.get(f"{API}/").json()["storage"] == "memory"


def test_memory_mode_serves_seeded_data(memory_client, demo_headers):
    tasks = memory_client.get(f"{API}/tasks", headers=demo_headers).json()
    categories = memory_client.get(f"{API}/categories", headers=demo_headers).json()
    stats = memory_client.get(f"{API}/tasks/stats", headers=demo_headers).json()

    assert tasks["total"] == 3
    assert categories["meta"]["total"] == 3
    assert stats == {"total": 3, "pending": 1, "inProgress": 1, "completed": 1, "overdue": 1}


def test_memory_mode_full_flow(memory_client):
    registered = memory_client.post(f"{API}/auth/register", json={
        "email": "new@x.com", "password": "StrongP@ssw0rd1", "firstName": "New", "lastName": "User",
    })
    assert registered.status_code == 201
    headers = {"Authorization": f"Bearer {registered.json()['accessToken']}"}

    category = memory_client.post(f"{API}/categories", json={"name": "Work"}, headers=headers).json()
    task = memory_client.post(f"{API}/tasks", json={"title": "T1", "categoryId": category["id"]},
                              headers=headers).json()
    note = memory_client.post(f"{API}/tasks/{task['id']}/notes", json={"content": "hello"},
                              headers=headers).json()["notes"][0]
    memory_client.put(f"{API}/tasks/bulk/update", headers=headers,
                      json={"taskIds": [task["id"]], "status": "completed"})

    fetched = memory_client.get(f"{API}/tasks/{task['id']}", headers=headers).json()
    assert fetched["isCompleted"] is True
    assert fetched["notes"][0]["id"] == note["id"]

    # Seeded demo data belongs to someone else
    assert memory_client.get(f"{API}/tasks", headers=headers).json()["total"] == 1

    assert memory_client.delete(f"{API}/categories/{category['id']}", headers=headers).status_code == 204
    assert memory_client.get(f"{API}/tasks/{task['id']}", headers=headers).json()["categoryId"] is None
