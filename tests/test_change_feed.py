"""Tests for the task change feed and its SSE framing."""
import asyncio
import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest

from taskrelay.api.v1.tasks import task_event_frames
from taskrelay.client.api import TaskApiClient
from taskrelay.client.store import TaskListStore
from taskrelay.models.task import TaskSource
from taskrelay.services.change_feed import DELETE, INSERT, UPDATE, ChangeFeed

from conftest import mock_transport

NOW = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class Row:
    """Attribute bag shaped like a Task row."""

    def __init__(self, title="Task", **overrides):
        self.id = uuid.uuid4()
        self.title = title
        self.description = ""
        self.is_completed = False
        self.source = TaskSource.WEB
        self.enhanced = False
        self.is_enhancing = False
        self.enhanced_description = None
        self.enhancement_steps = None
        self.created_at = NOW
        self.updated_at = NOW
        for key, value in overrides.items():
            setattr(self, key, value)


@pytest.mark.asyncio
async def test_lagging_subscriber_drops_oldest_event():
    feed = ChangeFeed(max_queue_size=2)
    first, second, third = Row("first"), Row("second"), Row("third")

    async with feed.subscribe() as queue:
        feed.publish(INSERT, first)
        feed.publish(INSERT, second)
        feed.publish(INSERT, third)

        kept = [queue.get_nowait().row.title for _ in range(queue.qsize())]

    assert kept == ["second", "third"]


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_harmless():
    feed = ChangeFeed()

    event = feed.publish(DELETE, Row())

    assert event.event_type == DELETE
    assert feed.subscriber_count == 0


@pytest.mark.asyncio
async def test_event_frames_render_camel_case_rows():
    feed = ChangeFeed()

    async def connected():
        return False

    frames = task_event_frames(feed, connected, heartbeat=5.0)
    pending = asyncio.ensure_future(frames.__anext__())
    while feed.subscriber_count == 0:
        await asyncio.sleep(0)

    row = Row("Buy milk", is_enhancing=True)
    feed.publish(UPDATE, row)
    frame = await asyncio.wait_for(pending, timeout=1.0)
    await frames.aclose()

    assert frame["event"] == UPDATE
    assert frame["id"] == str(row.id)
    data = json.loads(frame["data"])
    assert data["title"] == "Buy milk"
    assert data["isEnhancing"] is True
    assert feed.subscriber_count == 0


@pytest.mark.asyncio
async def test_event_frames_send_heartbeat_and_stop_on_disconnect():
    feed = ChangeFeed()
    checks = []

    async def disconnected_after_first_check():
        checks.append(True)
        return len(checks) > 1

    frames = [frame async for frame in task_event_frames(feed, disconnected_after_first_check, heartbeat=0.01)]

    assert frames == [{"comment": "heartbeat"}]
    assert feed.subscriber_count == 0


def sse_body(*events) -> bytes:
    chunks = [": heartbeat\n\n"]
    for event_type, row in events:
        chunks.append(f"event: {event_type}\nid: {row['id']}\ndata: {json.dumps(row)}\n\n")
    return "".join(chunks).encode()


def camel_row(title, **extra):
    row = {
        "id": str(uuid.uuid4()),
        "title": title,
        "description": "",
        "isCompleted": False,
        "source": "whatsapp",
        "enhanced": False,
        "isEnhancing": False,
        "enhancedDescription": None,
        "enhancementSteps": None,
        "createdAt": "2026-01-05T09:00:00+00:00",
        "updatedAt": "2026-01-05T09:00:00+00:00",
    }
    row.update(extra)
    return row


@pytest.mark.asyncio
async def test_client_parses_server_sent_events():
    created = camel_row("Buy milk", isEnhancing=True)
    enhanced = dict(created, isEnhancing=False, enhanced=True, enhancedDescription="Buy 2L whole milk")

    def handler(request):
        assert request.url.path == "/api/v1/tasks/events"
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=sse_body((INSERT, created), (UPDATE, enhanced)),
        )

    async with TaskApiClient("http://relay.test", transport=mock_transport(handler)) as api:
        events = [(event_type, task) async for event_type, task in api.stream_events()]

    assert [event_type for event_type, _ in events] == [INSERT, UPDATE]
    assert events[0][1].id == created["id"]
    assert events[1][1].enhanced_description == "Buy 2L whole milk"


@pytest.mark.asyncio
async def test_store_follow_merges_pushed_changes():
    kept = camel_row("kept")
    gone = camel_row("gone")
    updated = dict(kept, isCompleted=True)

    def handler(request):
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=sse_body((INSERT, kept), (INSERT, gone), (INSERT, kept), (UPDATE, updated), (DELETE, gone)),
        )

    async with TaskApiClient("http://relay.test", transport=mock_transport(handler)) as api:
        store = TaskListStore(api)
        await store.follow()

    assert [t.id for t in store.tasks] == [kept["id"]]
    assert store.tasks[0].is_completed is True
