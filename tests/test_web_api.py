"""
Tests for the HTTP and realtime interface
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect
from taskhub.api.local_store import LocalTaskStore, LocalUserDirectory, LocalAuditLog
from taskhub.web.main import TaskHubService, create_app

ALICE = {"X-User-Id": "u1"}
BOB = {"X-User-Id": "u2"}


@pytest.fixture
def service(users):
    return TaskHubService(
        store=LocalTaskStore(),
        users=LocalUserDirectory(users=users),
        audit=LocalAuditLog(),
        require_realtime_auth=False,
    )


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as client:
        yield client


def create(client, title="A", **fields):
    response = client.post("/api/tasks", json={"title": title, **fields}, headers=ALICE)
    assert response.status_code == 201
    return response.json()


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_requires_identity(client):
    assert client.get("/api/tasks").status_code == 401
    assert client.post("/api/tasks", json={"title": "A"}).status_code == 401


def test_create_task(client):
    task = create(client, "A", priority="Low")

    assert task["version"] == 1
    assert task["status"] == "Todo"
    assert task["priority"] == "Low"
    assert task["createdBy"] == "u1"
    assert "lastModified" in task


def test_create_invalid_status_rejected(client):
    response = client.post("/api/tasks", json={"title": "A", "status": "Blocked"}, headers=ALICE)

    assert response.status_code == 422


def test_create_duplicate_title(client):
    create(client, "A")

    response = client.post("/api/tasks", json={"title": "A"}, headers=BOB)

    assert response.status_code == 409
    assert response.json()["error_code"] == "DUPLICATE_TITLE"


def test_blank_title_is_bad_request(client):
    response = client.post("/api/tasks", json={"title": "   "}, headers=ALICE)

    assert response.status_code == 400
    assert response.json() == {"message": "Task title is required", "error_code": "INVALID_TASK"}


def test_internal_value_error_is_server_error(client, service):
    service.store.insert = AsyncMock(side_effect=ValueError("Task id already exists: t1"))

    response = client.post("/api/tasks", json={"title": "A"}, headers=ALICE)

    assert response.status_code == 500
    assert response.json()["message"] == "Server error"


def test_store_write_failure_is_server_error(tmp_path, users):
    service = TaskHubService(
        store=LocalTaskStore(data_file=str(tmp_path / "tasks.json")),
        users=LocalUserDirectory(users=users),
        audit=LocalAuditLog(),
        require_realtime_auth=False,
    )
    service.store._write_file = MagicMock(side_effect=OSError("disk full"))

    with TestClient(create_app(service)) as client:
        response = client.post("/api/tasks", json={"title": "A"}, headers=ALICE)

        assert response.status_code == 500
        assert client.get("/api/tasks", headers=ALICE).json() == []

def test_unknown_actor_is_server_error(client):
    response = client.post("/api/tasks", json={"title": "A"}, headers={"X-User-Id": "ghost"})

    assert response.status_code == 500
    assert response.json() == {"message": "Server error", "error": "User not found"}


def test_update_and_conflict(client):
    task = create(client, "A", priority="Low")
    body = {"title": "A2", "description": None, "priority": "Low", "status": "Todo", "version": 1}

    response = client.put(f"/api/tasks/{task['id']}", json=body, headers=ALICE)
    assert response.status_code == 200
    assert response.json()["version"] == 2

    stale = dict(body, title="A3")
    response = client.put(f"/api/tasks/{task['id']}", json=stale, headers=BOB)
    assert response.status_code == 409
    conflict = response.json()
    assert conflict["message"] == "Conflict detected"
    assert conflict["currentVersion"]["version"] == 2
    assert conflict["currentVersion"]["title"] == "A2"
    assert conflict["clientVersion"]["version"] == 1
    assert conflict["clientVersion"]["title"] == "A3"


def test_update_missing(client):
    body = {"title": "A", "priority": "Low", "status": "Todo", "version": 1}

    response = client.put("/api/tasks/missing", json=body, headers=ALICE)

    assert response.status_code == 404
    assert response.json()["message"] == "Task not found"


def test_delete_then_update_not_found(client):
    task = create(client, "A")

    response = client.delete(f"/api/tasks/{task['id']}", headers=BOB)
    assert response.status_code == 200
    assert response.json() == {"message": "Task deleted", "taskId": task["id"]}

    body = {"title": "A", "priority": "Low", "status": "Todo", "version": 1}
    assert client.put(f"/api/tasks/{task['id']}", json=body, headers=ALICE).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=ALICE).status_code == 404


def test_smart_assign(client):
    task = create(client, "A")

    response = client.post(f"/api/tasks/smart-assign/{task['id']}", headers=ALICE)

    assert response.status_code == 200
    data = response.json()
    assert data["assignedUser"] == {"id": "u1", "username": "alice"}
    assert data["version"] == 2

    listed = client.get("/api/tasks", headers=BOB).json()
    assert listed[0]["assignedUser"]["username"] == "alice"


def test_smart_assign_missing(client):
    assert client.post("/api/tasks/smart-assign/missing", headers=ALICE).status_code == 404


def test_actions_listed_newest_first(client):
    task = create(client, "A")
    client.delete(f"/api/tasks/{task['id']}", headers=BOB)

    actions = client.get("/api/actions", headers=ALICE).json()

    assert [a["action"] for a in actions] == ["Deleted task: A by bob", "Created task: A by alice"]
    assert client.get("/api/actions?limit=1", headers=ALICE).json()[0]["action"] == "Deleted task: A by bob"


def test_audit_failure_still_returns_success(client, service):
    service.audit.append = AsyncMock(side_effect=OSError("disk full"))

    response = client.post("/api/tasks", json={"title": "A"}, headers=ALICE)

    assert response.status_code == 201


def test_realtime_relay_between_sessions(client):
    with client.websocket_connect("/ws") as ws_a, client.websocket_connect("/ws") as ws_b:
        assert ws_a.receive_json()["event"] == "connected"
        assert ws_b.receive_json()["event"] == "connected"

        ws_a.send_json({"event": "taskUpdate", "data": {"id": "t1", "title": "draft"}})
        assert ws_b.receive_json() == {"event": "taskUpdated", "data": {"id": "t1", "title": "draft"}}

        ws_b.send_json({"event": "conflictDetected", "data": {"taskId": "t1", "versions": [{"version": 2}]}})
        assert ws_a.receive_json() == {
            "event": "resolveConflict",
            "data": {"taskId": "t1", "versions": [{"version": 2}]},
        }


def test_realtime_receives_action_logged(client):
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["event"] == "connected"

        task = create(client, "A")
        frame = ws.receive_json()

        assert frame["event"] == "actionLogged"
        assert frame["data"]["action"] == "Created task: A by alice"
        assert frame["data"]["taskId"] == task["id"]
        assert frame["data"]["taskSnapshot"]["version"] == 1


def test_realtime_auth_required(users):
    service = TaskHubService(
        store=LocalTaskStore(),
        users=LocalUserDirectory(users=users),
        audit=LocalAuditLog(),
        require_realtime_auth=True,
    )
    with TestClient(create_app(service)) as client:
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws") as ws:
                ws.receive_json()

        with client.websocket_connect("/ws?user_id=u2") as ws:
            assert ws.receive_json()["event"] == "connected"
