from uuid import uuid4

import pytest

from conftest import access_headers, register


@pytest.fixture
def alice(client):
    return access_headers(register(client, "alice.smith"))


@pytest.fixture
def bob(client):
    return access_headers(register(client, "bob.jones"))


def create(client, headers, title="Buy milk", **fields):
    response = client.post("/api/todos", json={"title": title, **fields}, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["todo"]


def list_todos(client, headers, **params):
    response = client.get("/api/todos", params=params, headers=headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]


class TestCrud:
    def test_create(self, client, alice):
        response = client.post(
            "/api/todos",
            json={"title": "Buy milk", "description": "2 litres"},
            headers=alice,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Created"
        todo = body["data"]["todo"]
        assert todo["title"] == "Buy milk"
        assert todo["description"] == "2 litres"
        assert todo["is_completed"] is False
        assert {"id", "user_id", "created_at", "updated_at"} <= set(todo)

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"title": ""},
            {"title": "x" * 256},
            {"title": "ok", "description": ""},
            {"title": "ok", "description": "x" * 5001},
            {"title": "ok", "is_completed": "maybe"},
        ],
    )
    def test_create_validation(self, client, alice, payload):
        response = client.post("/api/todos", json=payload, headers=alice)
        assert response.status_code == 400
        assert response.json()["data"] is None

    def test_unknown_fields_are_ignored(self, client, alice):
        todo = create(client, alice, user_id=str(uuid4()), id=str(uuid4()))
        assert client.get(f"/api/todos/{todo['id']}", headers=alice).status_code == 200

    def test_get_one(self, client, alice):
        todo = create(client, alice)

        response = client.get(f"/api/todos/{todo['id']}", headers=alice)

        assert response.status_code == 200
        assert response.json() == {"message": "OK", "data": {"todo": todo}}

    def test_update(self, client, alice):
        todo = create(client, alice, description="2 litres")

        response = client.put(
            f"/api/todos/{todo['id']}",
            json={"title": "Buy oat milk", "is_completed": True},
            headers=alice,
        )

        assert response.status_code == 200
        updated = response.json()["data"]["todo"]
        assert updated["title"] == "Buy oat milk"
        assert updated["is_completed"] is True
        # left out of the body, so unchanged
        assert updated["description"] == "2 litres"
        assert updated["updated_at"] > todo["updated_at"]

    def test_update_requires_title(self, client, alice):
        todo = create(client, alice)

        response = client.put(
            f"/api/todos/{todo['id']}", json={"is_completed": True}, headers=alice
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith("title")

    @pytest.mark.parametrize("field", ["title", "is_completed"])
    def test_update_rejects_null(self, client, alice, field):
        todo = create(client, alice)

        response = client.put(
            f"/api/todos/{todo['id']}",
            json={"title": "Buy milk", field: None},
            headers=alice,
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith(field)

        unchanged = client.get(f"/api/todos/{todo['id']}", headers=alice).json()
        assert unchanged["data"]["todo"]["is_completed"] is False

    def test_create_rejects_null_completion(self, client, alice):
        response = client.post(
            "/api/todos", json={"title": "Buy milk", "is_completed": None}, headers=alice
        )
        assert response.status_code == 400

    def test_delete(self, client, alice):
        todo = create(client, alice)

        response = client.delete(f"/api/todos/{todo['id']}", headers=alice)
        assert response.status_code == 200
        assert response.json() == {"message": "OK", "data": None}

        assert client.get(f"/api/todos/{todo['id']}", headers=alice).status_code == 404
        assert client.delete(f"/api/todos/{todo['id']}", headers=alice).status_code == 404

    @pytest.mark.parametrize("todo_id", ["42", "not-a-uuid", "0" * 32])
    def test_malformed_id(self, client, alice, todo_id):
        response = client.get(f"/api/todos/{todo_id}", headers=alice)
        assert response.status_code == 400
        assert response.json()["message"].startswith("todo_id")

    def test_missing_todo(self, client, alice):
        response = client.get(f"/api/todos/{uuid4()}", headers=alice)
        assert response.status_code == 404
        assert response.json() == {"message": "Todo not found", "data": None}

    def test_requires_access_token(self, client):
        for response in (
            client.get("/api/todos"),
            client.post("/api/todos", json={"title": "x"}),
            client.get(f"/api/todos/{uuid4()}"),
            client.delete(f"/api/todos?ids={uuid4()}"),
        ):
            assert response.status_code == 401
            assert response.json() == {"message": "No token provided", "data": None}


class TestOwnership:
    def test_foreign_todo_looks_missing(self, client, alice, bob):
        todo = create(client, alice)
        path = f"/api/todos/{todo['id']}"

        assert client.get(path, headers=bob).status_code == 404
        assert client.put(path, json={"title": "mine now"}, headers=bob).status_code == 404
        assert client.delete(path, headers=bob).status_code == 404

        # untouched for the owner
        response = client.get(path, headers=alice)
        assert response.json()["data"]["todo"]["title"] == "Buy milk"

    def test_listing_is_scoped_to_owner(self, client, alice, bob):
        create(client, alice, "alice 1")
        create(client, alice, "alice 2")
        create(client, bob, "bob 1")

        data = list_todos(client, alice)
        assert sorted(todo["title"] for todo in data["todos"]) == ["alice 1", "alice 2"]
        assert data["pagination"]["total_items"] == 2

    def test_owner_cannot_be_reassigned(self, client, alice, bob):
        todo = create(client, alice)
        bob_id = client.get("/api/users/me", headers=bob).json()["data"]["user"]["id"]

        response = client.put(
            f"/api/todos/{todo['id']}",
            json={"title": "Buy milk", "user_id": bob_id},
            headers=alice,
        )
        assert response.status_code == 200
        assert response.json()["data"]["todo"]["user_id"] == todo["user_id"]


class TestListing:
    def test_pagination_meta(self, client, alice):
        for i in range(12):
            create(client, alice, f"todo {i:02d}")

        data = list_todos(client, alice, page=2, limit=5)

        assert len(data["todos"]) == 5
        assert data["pagination"] == {
            "current_page": 2,
            "total_pages": 3,
            "total_items": 12,
            "items_per_page": 5,
            "has_next_page": True,
            "has_previous_page": True,
            "next_page": 3,
            "previous_page": 1,
        }

    def test_page_past_the_end(self, client, alice):
        create(client, alice)

        data = list_todos(client, alice, page=5)
        assert data["todos"] == []
        assert data["pagination"]["total_items"] == 1

    def test_sorting(self, client, alice):
        for title in ("banana", "apple", "cherry"):
            create(client, alice, title)

        ascending = list_todos(client, alice, sort_by="title", sort_order="asc")
        assert [todo["title"] for todo in ascending["todos"]] == ["apple", "banana", "cherry"]

        descending = list_todos(client, alice, sort_by="title", sort_order="desc")
        assert [todo["title"] for todo in descending["todos"]] == ["cherry", "banana", "apple"]

    def test_search_title_and_description(self, client, alice):
        create(client, alice, "Buy milk")
        create(client, alice, "Groceries", description="eggs and MILK")
        create(client, alice, "Laundry")

        data = list_todos(client, alice, search="milk", sort_by="title", sort_order="asc")
        assert [todo["title"] for todo in data["todos"]] == ["Buy milk", "Groceries"]
        assert data["pagination"]["total_items"] == 2

    def test_search_wildcards_are_literal(self, client, alice):
        create(client, alice, "50%_off sale")
        create(client, alice, "50 percent off")

        data = list_todos(client, alice, search="50%_off")
        assert [todo["title"] for todo in data["todos"]] == ["50%_off sale"]

    @pytest.mark.parametrize(
        "params",
        [
            {"page": 0},
            {"limit": 101},
            {"sort_by": "user_id"},
            {"sort_order": "up"},
            {"search": "x" * 256},
        ],
    )
    def test_invalid_query(self, client, alice, params):
        response = client.get("/api/todos", params=params, headers=alice)
        assert response.status_code == 400
        assert response.json()["data"] is None


class TestBulkDelete:
    def test_foreign_ids_are_ignored(self, client, alice, bob):
        mine = [create(client, alice, f"mine {i}")["id"] for i in range(2)]
        theirs = create(client, bob, "theirs")["id"]

        response = client.delete(
            "/api/todos", params={"ids": ",".join([*mine, theirs])}, headers=alice
        )

        assert response.status_code == 200
        assert response.json() == {"message": "OK", "data": None}
        assert list_todos(client, alice)["todos"] == []
        assert client.get(f"/api/todos/{theirs}", headers=bob).status_code == 200

    def test_unknown_ids_are_ignored(self, client, alice):
        todo = create(client, alice)

        response = client.delete(
            "/api/todos", params={"ids": f"{todo['id']},{uuid4()}"}, headers=alice
        )
        assert response.status_code == 200
        assert list_todos(client, alice)["pagination"]["total_items"] == 0

    def test_fifty_ids_are_accepted(self, client, alice):
        ids = ",".join(str(uuid4()) for _ in range(50))
        response = client.delete("/api/todos", params={"ids": ids}, headers=alice)
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "ids",
        [
            None,
            "",
            "not-a-uuid",
            f"{uuid4()},,{uuid4()}",
            ",".join(str(uuid4()) for _ in range(51)),
        ],
    )
    def test_invalid_ids_delete_nothing(self, client, alice, ids):
        todo = create(client, alice)
        params = {} if ids is None else {"ids": f"{todo['id']},{ids}" if ids else ids}

        response = client.delete("/api/todos", params=params, headers=alice)

        assert response.status_code == 400
        assert response.json()["message"] == "ids: Value error, ids must be 1-50 comma-separated valid UUIDs"
        assert client.get(f"/api/todos/{todo['id']}", headers=alice).status_code == 200
