"""Tasks API endpoints (web UI)."""
import asyncio
from typing import AsyncIterator, Awaitable, Callable, List
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sse_starlette.sse import EventSourceResponse

from taskrelay.database import get_db
from taskrelay.dependencies import (
    get_change_feed,
    get_enhancement_coordinator,
    get_task_service,
)
from taskrelay.models.task import TaskSource
from taskrelay.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from taskrelay.services.change_feed import ChangeFeed
from taskrelay.services.enhancement_service import EnhancementCoordinator
from taskrelay.services.task_service import TaskService

router = APIRouter()

HEARTBEAT_SECONDS = 15


async def task_event_frames(
    change_feed: ChangeFeed,
    is_disconnected: Callable[[], Awaitable[bool]],
    *,
    heartbeat: float = HEARTBEAT_SECONDS,
) -> AsyncIterator[dict]:
    """SSE frames for the change feed until the client goes away."""
    async with change_feed.subscribe() as queue:
        while not await is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat)
            except asyncio.TimeoutError:
                yield {"comment": "heartbeat"}
                continue
            yield {
                "event": event.event_type,
                "id": str(event.row.id),
                "data": event.row.model_dump_json(by_alias=True),
            }


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """List all tasks, newest first."""
    return await tasks.list_tasks(db)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """Create a task from the web UI. Web tasks are enhanced only on request."""
    return await tasks.create_task(
        db,
        title=task_data.title,
        description=task_data.description,
        source=TaskSource.WEB,
    )


@router.get("/events")
async def stream_task_events(
    request: Request,
    change_feed: ChangeFeed = Depends(get_change_feed),
):
    """Server-sent stream of insert/update/delete events for the tasks table."""
    return EventSourceResponse(task_event_frames(change_feed, request.is_disconnected))


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """Get a task by ID."""
    return await tasks.get_task(db, task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    task_data: TaskUpdate = Body(...),
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """Update a task with the fields present in the body."""
    return await tasks.update_task(db, task_id, task_data.model_dump(exclude_unset=True))


@router.delete("/{task_id}")
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """Delete a task."""
    await tasks.delete_task(db, task_id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/enhance", response_model=TaskResponse)
async def enhance_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    coordinator: EnhancementCoordinator = Depends(get_enhancement_coordinator),
):
    """Enhance a task with the AI workflow and return the enhanced task."""
    return await coordinator.enhance(db, task_id)
