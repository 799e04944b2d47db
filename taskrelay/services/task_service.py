"""Task store operations shared by the web and chat-integration endpoints."""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.core.exceptions import NotFoundError, ValidationError
from taskrelay.crud.task import task as task_crud
from taskrelay.models.task import Task, TaskSource
from taskrelay.services.change_feed import DELETE, INSERT, UPDATE, ChangeFeed
from taskrelay.services.enhancement_service import EnhancementCoordinator

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "title",
    "description",
    "is_completed",
    "enhanced",
    "is_enhancing",
    "enhanced_description",
    "enhancement_steps",
}
BOOLEAN_FIELDS = {"is_completed", "enhanced", "is_enhancing"}


def clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required and must be a non-empty string")
    return title.strip()


def clean_description(description: Any) -> str:
    return description.strip() if isinstance(description, str) else ""


def parse_task_id(raw: Any) -> UUID:
    """Parse an id coming from a chat payload; unknown shapes are simply not found."""
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except (TypeError, ValueError):
        raise NotFoundError("Task not found")


class TaskService:
    """Validating facade over task persistence.

    Creation of WhatsApp-sourced tasks also hands the task to the enhancement
    coordinator without waiting for the result.
    """

    def __init__(self, coordinator: EnhancementCoordinator, change_feed: ChangeFeed):
        self.coordinator = coordinator
        self.change_feed = change_feed

    async def list_tasks(self, db: AsyncSession, *, limit: Optional[int] = None) -> List[Task]:
        return await task_crud.get_multi_newest(db, limit=limit)

    async def get_task(self, db: AsyncSession, task_id: UUID) -> Task:
        task_obj = await task_crud.get(db, id=task_id)
        if task_obj is None:
            raise NotFoundError("Task not found")
        return task_obj

    async def create_task(
        self,
        db: AsyncSession,
        *,
        title: Any,
        description: Optional[str] = None,
        source: TaskSource = TaskSource.WEB,
    ) -> Task:
        new_task = await task_crud.create(
            db,
            obj_in={
                "title": clean_title(title),
                "description": clean_description(description),
                "source": source,
                "is_completed": False,
                "enhanced": False,
                "is_enhancing": False,
            },
        )
        self.change_feed.publish(INSERT, new_task)
        logger.info("Created task %s (source=%s)", new_task.id, source.value)

        if source == TaskSource.WHATSAPP:
            new_task = await self.coordinator.schedule(db, new_task)
        return new_task

    async def update_task(self, db: AsyncSession, task_id: UUID, data: Dict[str, Any]) -> Task:
        """Apply a partial update.

        ``data`` holds only the fields the caller actually sent, keyed by
        column name. Explicit nulls on flags are treated as "not sent".
        """
        unknown = set(data) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        update_data: Dict[str, Any] = {}
        for field, value in data.items():
            if field == "title":
                update_data["title"] = clean_title(value)
            elif field == "description":
                update_data["description"] = clean_description(value)
            elif field in BOOLEAN_FIELDS:
                if value is None:
                    continue
                if not isinstance(value, bool):
                    raise ValidationError(f"{field} must be a boolean")
                update_data[field] = value
            else:
                update_data[field] = value

        task_obj = await self.get_task(db, task_id)
        updated = await task_crud.update(db, db_obj=task_obj, obj_in=update_data)
        self.change_feed.publish(UPDATE, updated)
        logger.debug(
            "Updated task %s (enhanced=%s, is_enhancing=%s)",
            updated.id,
            updated.enhanced,
            updated.is_enhancing,
        )
        return updated

    async def delete_task(self, db: AsyncSession, task_id: UUID) -> None:
        removed = await task_crud.remove(db, id=task_id)
        if removed is None:
            raise NotFoundError("Task not found")
        if removed.is_enhancing:
            logger.info("Task %s deleted with enhancement in flight; result will be dropped", task_id)
        self.change_feed.publish(DELETE, removed)
