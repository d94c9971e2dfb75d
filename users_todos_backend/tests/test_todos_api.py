from datetime import datetime


def create_user(client, email="owner@x.com"):
    res = client.post("/new-user", json={"name": "Owner", "email": email})
    assert res.status_code == 201
    return res.json()["data"]["id"]


def create_todo_payload(
    user_id=None,
    title="Test Task",
    description="Do something",
    completed=False,
    due_date=None,
):
    payload = {
        "user_id": user_id,
        "title": title,
        "description": description,
        "completed": completed,
    }
    if due_date is not None:
        payload["due_date"] = due_date
    return payload


def assert_todo_shape(todo: dict):
    for key in ["id", "user_id", "title", "completed", "created_at", "updated_at"]:
        assert key in todo
    assert "description" in todo
    assert "due_date" in todo
    assert isinstance(todo["id"], int)
    assert isinstance(todo["title"], str)
    assert isinstance(todo["completed"], bool)
    datetime.fromisoformat(todo["created_at"])
    datetime.fromisoformat(todo["updated_at"])


class TestCreateTodo:
    def test_create_todo_minimal(self, client):
        uid = create_user(client)
        res = client.post("/todos", json={"user_id": uid, "title": "Buy milk"})
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Todo created successfully"
        todo = body["data"]
        assert_todo_shape(todo)
        assert todo["user_id"] == uid
        assert todo["title"] == "Buy milk"
        assert todo["description"] is None
        assert todo["completed"] is False
        assert todo["due_date"] is None

    def test_create_todo_without_owner(self, client):
        res = client.post("/todos", json={"title": "Unowned"})
        assert res.status_code == 201
        assert res.json()["data"]["user_id"] is None

    def test_create_todo_with_due_date(self, client):
        uid = create_user(client)
        res = client.post("/todos", json=create_todo_payload(uid, title="Pay bills", due_date="2099-12-25"))
        assert res.status_code == 201
        assert res.json()["data"]["due_date"] == "2099-12-25"

    def test_due_date_time_part_is_dropped(self, client):
        res = client.post("/todos", json=create_todo_payload(title="Trip", due_date="2099-12-25T13:45:00"))
        assert res.status_code == 201
        assert res.json()["data"]["due_date"] == "2099-12-25"

    def test_unknown_user_is_not_found(self, client):
        res = client.post("/todos", json={"user_id": 999999, "title": "Orphan"})
        assert res.status_code == 404
        body = res.json()
        assert body["success"] is False
        assert body["message"] == "User not found"
        assert client.get("/todos").status_code == 404

    def test_missing_title_is_bad_request(self, client):
        uid = create_user(client)
        res = client.post("/todos", json={"user_id": uid})
        assert res.status_code == 400
        assert res.json()["message"] == "Request validation failed"

    def test_blank_title_is_bad_request(self, client):
        res = client.post("/todos", json={"title": "  "})
        assert res.status_code == 400

    def test_user_id_outside_integer_column_range_is_bad_request(self, client):
        res = client.post("/todos", json={"user_id": -3000000000, "title": "Overflow"})
        assert res.status_code == 400
        assert res.json()["message"] == "Request validation failed"
        assert client.get("/todos").status_code == 404

    def test_bad_due_date_is_bad_request(self, client):
        res = client.post("/todos", json=create_todo_payload(title="Bad date", due_date="not-a-date"))
        assert res.status_code == 400
        assert isinstance(res.json()["details"], list)


class TestListTodos:
    def test_empty_list_is_not_found(self, client):
        res = client.get("/todos")
        assert res.status_code == 404
        assert res.json() == {"success": False, "message": "No todos found"}

    def test_list_returns_every_todo(self, client):
        uid = create_user(client)
        ids = {client.post("/todos", json={"user_id": uid, "title": f"Task {i}"}).json()["data"]["id"] for i in range(3)}

        res = client.get("/todos")
        assert res.status_code == 200
        body = res.json()
        assert body["message"] == "Todos retrieved successfully"
        assert {t["id"] for t in body["data"]} == ids


class TestTodoItem:
    def test_get_todo_and_not_found(self, client):
        tid = client.post("/todos", json={"title": "Read book"}).json()["data"]["id"]

        res = client.get(f"/todos/{tid}")
        assert res.status_code == 200
        assert res.json()["message"] == "Todo fetched successfully"
        assert res.json()["data"]["title"] == "Read book"

        res_404 = client.get("/todos/999999")
        assert res_404.status_code == 404
        assert res_404.json()["message"] == "Todo not found"

        assert client.get("/todos/-3000000000").status_code == 400

    def test_put_replaces_todo(self, client):
        uid = create_user(client)
        tid = client.post("/todos", json=create_todo_payload(uid, title="Initial", description="A")).json()["data"]["id"]

        new_payload = create_todo_payload(uid, title="Replaced", description=None, completed=True, due_date="2100-01-01")
        res = client.put(f"/todos/{tid}", json=new_payload)
        assert res.status_code == 200
        updated = res.json()["data"]
        assert updated["id"] == tid
        assert updated["title"] == "Replaced"
        assert updated["description"] is None
        assert updated["completed"] is True
        assert updated["due_date"] == "2100-01-01"

        res_nf = client.put("/todos/424242", json=new_payload)
        assert res_nf.status_code == 404
        assert res_nf.json()["message"] == "Todo not found"

    def test_put_with_unknown_user_is_not_found(self, client):
        tid = client.post("/todos", json={"title": "Mine"}).json()["data"]["id"]
        res = client.put(f"/todos/{tid}", json={"user_id": 31337, "title": "Mine"})
        assert res.status_code == 404
        assert res.json()["message"] == "User not found"
        assert client.get(f"/todos/{tid}").json()["data"]["user_id"] is None

    def test_delete_todo(self, client):
        tid = client.post("/todos", json={"title": "ToDelete"}).json()["data"]["id"]

        res = client.delete(f"/todos/{tid}")
        assert res.status_code == 200
        assert res.json() == {"success": True, "message": "Todo deleted successfully", "data": None}

        assert client.get(f"/todos/{tid}").status_code == 404
        res_again = client.delete(f"/todos/{tid}")
        assert res_again.status_code == 404
        assert res_again.json()["message"] == "Todo not found"
