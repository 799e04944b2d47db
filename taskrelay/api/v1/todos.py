"""Task endpoints called by the WhatsApp reasoning workflow.

Every call carries the phone number of the conversation it acts for; the
envelopes follow the shape the workflow's tool definitions expect.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.config import Settings
from taskrelay.core.exceptions import ValidationError
from taskrelay.database import get_db
from taskrelay.dependencies import get_settings, get_task_service
from taskrelay.models.task import TaskSource
from taskrelay.schemas.chat import (
    TodoCreateRequest,
    TodoDeleteRequest,
    TodoListRequest,
    TodoUpdateRequest,
)
from taskrelay.schemas.task import TaskResponse
from taskrelay.services.task_service import TaskService, parse_task_id

router = APIRouter()


def _require(value: Any, name: str) -> None:
    if not value:
        raise ValidationError(f"{name} is required")


def _todo(task_obj) -> Dict[str, Any]:
    return TaskResponse.model_validate(task_obj).model_dump(mode="json", by_alias=True)


@router.post("/list")
async def list_todos(
    payload: TodoListRequest,
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
):
    """Fetch the newest tasks for the workflow."""
    _require(payload.phoneNumber, "phoneNumber")
    todos = await tasks.list_tasks(db, limit=settings.TODO_LIST_LIMIT)
    return {"success": True, "count": len(todos), "todos": [_todo(t) for t in todos]}


@router.post("/create")
async def create_todo(
    payload: TodoCreateRequest,
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """Create a task; WhatsApp tasks are enhanced in the background."""
    _require(payload.phoneNumber, "phoneNumber")
    _require(payload.title, "title")
    try:
        source = TaskSource(payload.source or TaskSource.WHATSAPP.value)
    except ValueError:
        raise ValidationError("source must be 'web' or 'whatsapp'")

    new_task = await tasks.create_task(
        db,
        title=payload.title,
        description=payload.description,
        source=source,
    )
    return {"success": True, "message": "Task created successfully", "todo": _todo(new_task)}


@router.post("/update")
async def update_todo(
    payload: TodoUpdateRequest,
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """Update title, description or completion of a task."""
    _require(payload.phoneNumber, "phoneNumber")
    _require(payload.id, "id")

    data = payload.model_dump(exclude_unset=True, exclude={"phoneNumber", "id"})
    if "completed" in data:
        data["is_completed"] = data.pop("completed")

    updated = await tasks.update_task(db, parse_task_id(payload.id), data)
    return {"success": True, "message": "Task updated successfully", "todo": _todo(updated)}


@router.post("/delete")
async def delete_todo(
    payload: TodoDeleteRequest,
    db: AsyncSession = Depends(get_db),
    tasks: TaskService = Depends(get_task_service),
):
    """Delete a task."""
    _require(payload.phoneNumber, "phoneNumber")
    _require(payload.id, "id")
    await tasks.delete_task(db, parse_task_id(payload.id))
    return {"success": True, "message": "Task deleted successfully"}
