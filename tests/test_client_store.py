"""Tests for the optimistic client store against a scripted server."""
import json
import uuid

import httpx
import pytest
import pytest_asyncio

from taskrelay.client.api import TaskApiClient, TaskApiError
from taskrelay.client.store import TaskListStore

from conftest import mock_transport

NOW = "2026-01-05T09:00:00+00:00"


def row(task_id=None, title="Task", **kwargs):
    data = {
        "id": task_id or str(uuid.uuid4()),
        "title": title,
        "description": "",
        "isCompleted": False,
        "source": "web",
        "enhanced": False,
        "isEnhancing": False,
        "enhancedDescription": None,
        "enhancementSteps": None,
        "createdAt": NOW,
        "updatedAt": NOW,
    }
    data.update(kwargs)
    return data


class ScriptedServer:
    """In-memory stand-in for the task endpoints."""

    def __init__(self):
        self.rows = {}
        self.fail_next = None
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        if self.fail_next is not None:
            status, self.fail_next = self.fail_next, None
            return httpx.Response(status, json={"detail": "nope"})

        parts = request.url.path.rstrip("/").split("/")
        if request.method == "GET" and parts[-1] == "tasks":
            return httpx.Response(200, json=list(self.rows.values()))
        if request.method == "POST" and parts[-1] == "tasks":
            body = json.loads(request.content)
            created = row(title=body["title"], description=body.get("description", ""))
            self.rows[created["id"]] = created
            return httpx.Response(201, json=created)
        if request.method == "POST" and parts[-1] == "enhance":
            current = dict(self.rows[parts[-2]], enhanced=True, enhancedDescription="Detailed")
            self.rows[parts[-2]] = current
            return httpx.Response(200, json=current)

        task_id = parts[-1]
        if task_id not in self.rows:
            return httpx.Response(404, json={"detail": "Task not found"})
        if request.method == "PATCH":
            self.rows[task_id] = dict(self.rows[task_id], **json.loads(request.content))
            return httpx.Response(200, json=self.rows[task_id])
        if request.method == "DELETE":
            del self.rows[task_id]
            return httpx.Response(200, json={"message": "Task deleted successfully"})
        return httpx.Response(405)


@pytest.fixture
def server():
    return ScriptedServer()


@pytest_asyncio.fixture
async def store(server):
    api = TaskApiClient("http://relay.test", transport=mock_transport(server))
    yield TaskListStore(api)
    await api.aclose()


@pytest.mark.asyncio
async def test_create_confirms_placeholder(server, store):
    created = await store.create("Buy milk")

    assert [t.id for t in store.tasks] == [created.id]
    assert not created.is_placeholder
    assert store.saving == 0


@pytest.mark.asyncio
async def test_failed_create_rolls_back(server, store):
    server.fail_next = 400

    with pytest.raises(TaskApiError) as exc_info:
        await store.create("Buy milk")

    assert exc_info.value.status_code == 400
    assert store.tasks == []
    assert store.saving == 0


@pytest.mark.asyncio
async def test_update_sends_camel_case_and_confirms(server, store):
    created = await store.create("Buy milk")

    updated = await store.update(created.id, is_completed=True)

    assert updated.is_completed is True
    assert server.rows[created.id]["isCompleted"] is True
    assert store.get(created.id).is_completed is True


@pytest.mark.asyncio
async def test_failed_update_restores_previous(server, store):
    created = await store.create("Buy milk")
    server.fail_next = 500

    with pytest.raises(TaskApiError):
        await store.update(created.id, title="Changed")

    assert store.get(created.id).title == "Buy milk"


@pytest.mark.asyncio
async def test_failed_delete_restores_list(server, store):
    first = await store.create("first")
    second = await store.create("second")
    server.fail_next = 500

    with pytest.raises(TaskApiError):
        await store.delete(first.id)

    assert [t.id for t in store.tasks] == [second.id, first.id]

    await store.delete(first.id)
    assert [t.id for t in store.tasks] == [second.id]


@pytest.mark.asyncio
async def test_enhance_replaces_task(server, store):
    created = await store.create("Buy milk")

    enhanced = await store.enhance(created.id)

    assert enhanced.enhanced is True
    assert store.get(created.id).enhanced_description == "Detailed"


@pytest.mark.asyncio
async def test_push_events_merge_with_local_state(server, store):
    created = await store.create("mine")
    other = row(title="from chat", source="whatsapp", isEnhancing=True)

    store.apply_push("insert", other)
    store.apply_push("insert", row(task_id=created.id, title="mine"))

    assert [t.id for t in store.tasks] == [other["id"], created.id]
    assert store.get(other["id"]).is_enhancing is True

    store.apply_push("delete", other)
    assert [t.id for t in store.tasks] == [created.id]


@pytest.mark.asyncio
async def test_refresh_loads_server_rows(server, store):
    existing = row(title="existing")
    server.rows[existing["id"]] = existing

    tasks = await store.refresh()

    assert [t.title for t in tasks] == ["existing"]
    assert store.error is None


@pytest.mark.asyncio
async def test_refresh_failure_records_error(server, store):
    server.fail_next = 500

    with pytest.raises(TaskApiError):
        await store.refresh()

    assert store.error is not None
