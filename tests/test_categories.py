"""
Tests for owner-scoped category CRUD, pagination and statistics.
"""
import uuid

import pytest

from taskapi.errors import AppValidationError, ConflictError, NotFoundError

API = "/api/v1"


def _create(client, headers, name, **extra):
    response = client.post(f"{API}/categories", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Service
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_create_applies_default_color(category_service):
    category = category_service.create("Work", "user-1")
    assert category.color == "#6366F1"
    assert category.task_count == 0


def test_names_are_unique_per_owner_ignoring_case(category_service):
    category_service.create("Work", "user-1")

    with pytest.raises(ConflictError):
        category_service.create("work", "user-1")

    other = category_service.create("work", "user-2")
    assert other.name == "work"


def test_rename_to_existing_name_conflicts(category_service):
    category_service.create("Work", "user-1")
    home = category_service.create("Home", "user-1")

    with pytest.raises(ConflictError):
        category_service.update(home.id, {"name": "WORK"}, "user-1")


def test_rename_changing_only_case_is_allowed(category_service):
    work = category_service.create("Work", "user-1")
    updated = category_service.update(work.id, {"name": "WORK"}, "user-1")
    assert updated.name == "WORK"


def test_update_merges_fields(category_service):
    work = category_service.create("Work", "user-1", description="Office", color="#112233")
    updated = category_service.update(work.id, {"color": "#AABBCC"}, "user-1")

    assert updated.color == "#AABBCC"
    assert updated.description == "Office"
    assert updated.name == "Work"


def test_other_owner_sees_not_found(category_service):
    work = category_service.create("Work", "user-1")

    with pytest.raises(NotFoundError):
        category_service.get(work.id, "user-2")
    with pytest.raises(NotFoundError):
        category_service.update(work.id, {"name": "Mine"}, "user-2")
    with pytest.raises(NotFoundError):
        category_service.remove(work.id, "user-2")


def test_stats_average_is_rounded(category_service, task_service):
    work = category_service.create("Work", "user-1")
    category_service.create("Home", "user-1")
    category_service.create("Gym", "user-1")
    task_service.create("T1", "user-1", category_id=work.id)

    stats = category_service.stats("user-1")

    assert stats.total_categories == 3
    assert stats.categories_with_tasks == 1
    assert stats.average_tasks_per_category == 0.33


def test_stats_without_categories(category_service):
    stats = category_service.stats("user-1")
    assert stats.total_categories == 0
    assert stats.average_tasks_per_category == 0


def test_list_rejects_unsupported_sorting(category_service):
    with pytest.raises(AppValidationError):
        category_service.list("user-1", sort_by="color")
    with pytest.raises(AppValidationError):
        category_service.list("user-1", sort_order="sideways")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HTTP
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_create_category(client, alice):
    body = _create(client, alice, "Work", description="Job stuff")

    assert body["name"] == "Work"
    assert body["description"] == "Job stuff"
    assert body["color"] == "#6366F1"
    assert body["taskCount"] == 0
    uuid.UUID(body["id"])


def test_duplicate_name_returns_409(client, alice, bob):
    _create(client, alice, "Work")

    response = client.post(f"{API}/categories", json={"name": "work"}, headers=alice)
    assert response.status_code == 409
    assert response.json()["message"] == "Category with this name already exists"

    # Another user may reuse the name
    _create(client, bob, "work")


@pytest.mark.parametrize("payload", [
    {"name": ""},
    {"name": "   "},
    {"name": "x" * 101},
    {"name": "Work", "color": "red"},
    {"name": "Work", "color": "#12345"},
    {},
])
def test_create_validation(client, alice, payload):
    response = client.post(f"{API}/categories", json=payload, headers=alice)
    assert response.status_code == 400


def test_list_pagination_meta(client, alice):
    for i in range(5):
        _create(client, alice, f"Category {i}")

    response = client.get(f"{API}/categories", params={"page": 2, "limit": 2}, headers=alice)

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["meta"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}


def test_list_page_beyond_range_is_empty(client, alice):
    _create(client, alice, "Only")

    body = client.get(f"{API}/categories", params={"page": 9}, headers=alice).json()

    assert body["data"] == []
    assert body["meta"]["total"] == 1
    assert body["meta"]["totalPages"] == 1


def test_list_far_beyond_range_is_empty(client, alice):
    _create(client, alice, "Only")

    response = client.get(f"{API}/categories", params={"page": 10 ** 19}, headers=alice)

    assert response.status_code == 200
    assert response.json()["data"] == []
    assert response.json()["meta"]["total"] == 1


def test_list_rejects_limit_over_100(client, alice):
    response = client.get(f"{API}/categories", params={"limit": 101}, headers=alice)
    assert response.status_code == 400


def test_list_search_and_sort(client, alice):
    for name in ("Work", "Homework", "Garden"):
        _create(client, alice, name)

    body = client.get(
        f"{API}/categories",
        params={"search": "WORK", "sortBy": "name", "sortOrder": "ASC"},
        headers=alice,
    ).json()

    assert [c["name"] for c in body["data"]] == ["Homework", "Work"]
    assert body["meta"]["total"] == 2


def test_list_rejects_unknown_sort_field(client, alice):
    response = client.get(f"{API}/categories", params={"sortBy": "color"}, headers=alice)
    assert response.status_code == 400


def test_list_only_shows_own_categories(client, alice, bob):
    _create(client, alice, "Alice's")
    _create(client, bob, "Bob's")

    body = client.get(f"{API}/categories", headers=bob).json()
    assert [c["name"] for c in body["data"]] == ["Bob's"]


def test_cross_user_access_is_not_found(client, alice, bob):
    category_id = _create(client, alice, "Private")["id"]

    assert client.get(f"{API}/categories/{category_id}", headers=bob).status_code == 404
    assert client.patch(f"{API}/categories/{category_id}", json={"name": "Mine"},
                        headers=bob).status_code == 404
    assert client.delete(f"{API}/categories/{category_id}", headers=bob).status_code == 404
    # Still there for the owner
    assert client.get(f"{API}/categories/{category_id}", headers=alice).status_code == 200


def test_get_unknown_and_malformed_ids(client, alice):
    assert client.get(f"{API}/categories/{uuid.uuid4()}", headers=alice).status_code == 404
    assert client.get(f"{API}/categories/not-a-uuid", headers=alice).status_code == 400


def test_patch_category(client, alice):
    category_id = _create(client, alice, "Work")["id"]

    response = client.patch(f"{API}/categories/{category_id}",
                            json={"description": "Updated"}, headers=alice)

    assert response.status_code == 200
    assert response.json()["description"] == "Updated"
    assert response.json()["name"] == "Work"


def test_patch_rename_conflict(client, alice):
    _create(client, alice, "Work")
    home_id = _create(client, alice, "Home")["id"]

    response = client.patch(f"{API}/categories/{home_id}", json={"name": "work"}, headers=alice)
    assert response.status_code == 409


def test_delete_category_unsets_task_reference(client, alice):
    category_id = _create(client, alice, "Work")["id"]
    task = client.post(f"{API}/tasks", json={"title": "T1", "categoryId": category_id},
                       headers=alice).json()

    response = client.delete(f"{API}/categories/{category_id}", headers=alice)

    assert response.status_code == 204
    assert client.get(f"{API}/categories/{category_id}", headers=alice).status_code == 404
    assert client.get(f"{API}/tasks/{task['id']}", headers=alice).json()["categoryId"] is None


def test_stats_endpoint(client, alice, bob):
    work_id = _create(client, alice, "Work")["id"]
    _create(client, alice, "Home")
    for title in ("T1", "T2", "T3"):
        client.post(f"{API}/tasks", json={"title": title, "categoryId": work_id}, headers=alice)
    _create(client, bob, "Bob's")

    body = client.get(f"{API}/categories/stats", headers=alice).json()

    assert body == {
        "totalCategories": 2,
        "categoriesWithTasks": 1,
        "averageTasksPerCategory": 1.5,
    }


def test_task_count_in_projection(client, alice):
    work_id = _create(client, alice, "Work")["id"]
    client.post(f"{API}/tasks", json={"title": "T1", "categoryId": work_id}, headers=alice)

    assert client.get(f"{API}/categories/{work_id}", headers=alice).json()["taskCount"] == 1
    listed = client.get(f"{API}/categories", headers=alice).json()["data"]
    assert listed[0]["taskCount"] == 1
