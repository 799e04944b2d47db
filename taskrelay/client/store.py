"""Optimistic task list kept in step with the server."""
import logging
from typing import Any, List, Optional

from taskrelay.client.api import TaskApiClient
from taskrelay.client.models import ClientTask
from taskrelay.client.reconciler import (
    OptimisticCreate,
    OptimisticDelete,
    OptimisticUpdate,
    PushEvent,
    Replace,
    RollbackCreate,
    RollbackDelete,
    RollbackUpdate,
    ServerConfirmed,
    TaskListUpdate,
    reduce,
)

logger = logging.getLogger(__name__)


class TaskListStore:
    """Applies mutations locally first, then reconciles with the server.

    On failure the pre-mutation state is restored and the error re-raised to
    the caller.
    """

    def __init__(self, api: TaskApiClient):
        self.api = api
        self.tasks: List[ClientTask] = []
        self.saving = 0
        self.error: Optional[str] = None

    def dispatch(self, update: TaskListUpdate) -> List[ClientTask]:
        self.tasks = reduce(self.tasks, update)
        return self.tasks

    def get(self, task_id: str) -> Optional[ClientTask]:
        return next((t for t in self.tasks if t.id == task_id), None)

    async def refresh(self) -> List[ClientTask]:
        self.error = None
        try:
            self.tasks = await self.api.list_tasks()
        except Exception as exc:
            self.error = str(exc)
            raise
        return self.tasks

    async def create(self, title: str, description: Optional[str] = None) -> ClientTask:
        placeholder = ClientTask.placeholder(title, description)
        self.dispatch(OptimisticCreate(placeholder))
        self.saving += 1
        try:
            created = await self.api.create_task(title, description)
        except Exception:
            self.dispatch(RollbackCreate(placeholder.id))
            raise
        finally:
            self.saving -= 1
        self.dispatch(ServerConfirmed(placeholder.id, created))
        return created

    async def update(self, task_id: str, **changes: Any) -> ClientTask:
        previous = self.get(task_id)
        self.dispatch(OptimisticUpdate(task_id, changes))
        self.saving += 1
        try:
            updated = await self.api.update_task(task_id, changes)
        except Exception:
            if previous is not None:
                self.dispatch(RollbackUpdate(previous))
            raise
        finally:
            self.saving -= 1
        self.dispatch(ServerConfirmed(task_id, updated))
        return updated

    async def delete(self, task_id: str) -> None:
        previous = list(self.tasks)
        self.dispatch(OptimisticDelete(task_id))
        self.saving += 1
        try:
            await self.api.delete_task(task_id)
        except Exception:
            self.dispatch(RollbackDelete(previous))
            raise
        finally:
            self.saving -= 1

    async def enhance(self, task_id: str) -> ClientTask:
        """No optimistic change: the list only moves once the AI result is in."""
        self.saving += 1
        try:
            enhanced = await self.api.enhance_task(task_id)
        finally:
            self.saving -= 1
        self.dispatch(Replace(enhanced))
        return enhanced

    def apply_push(self, event_type: str, row: Any) -> List[ClientTask]:
        task = row if isinstance(row, ClientTask) else ClientTask.model_validate(row)
        return self.dispatch(PushEvent(event_type, task))

    async def follow(self) -> None:
        """Merge the server change feed until the stream ends."""
        async for event_type, task in self.api.stream_events():
            logger.debug("Push %s for task %s", event_type, task.id)
            self.apply_push(event_type, task)
