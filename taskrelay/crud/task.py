"""Task CRUD operations."""
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.crud.base import CRUDBase
from taskrelay.models.task import Task, utcnow
from taskrelay.schemas.task import TaskUpdate


class CRUDTask(CRUDBase[Task, dict, TaskUpdate]):
    """CRUD operations for Task."""

    async def get_multi_newest(
        self,
        db: AsyncSession,
        *,
        limit: Optional[int] = None,
    ) -> List[Task]:
        """List tasks ordered newest-first."""
        query = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: Task,
        obj_in: Union[TaskUpdate, Dict[str, Any]],
    ) -> Task:
        """Update a task, bumping updated_at.

        Writing enhanced=True without an explicit is_enhancing clears the
        in-flight flag so a result writer cannot leave it stuck.
        """
        update_data = dict(obj_in) if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        if update_data.get("enhanced") is True and "is_enhancing" not in update_data:
            update_data["is_enhancing"] = False
        if "enhancement_steps" in update_data and not update_data["enhancement_steps"]:
            update_data["enhancement_steps"] = None
        update_data["updated_at"] = utcnow()
        return await super().update(db, db_obj=db_obj, obj_in=update_data)


task = CRUDTask(Task)
