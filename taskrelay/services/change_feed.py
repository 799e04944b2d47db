"""In-process change feed for the tasks table."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set

from taskrelay.models.task import Task
from taskrelay.schemas.task import TaskChangeEvent, TaskResponse

logger = logging.getLogger(__name__)

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"


class ChangeFeed:
    """Fans task mutations out to every live subscriber.

    Each subscriber owns a bounded queue; a subscriber that falls behind loses
    its oldest events rather than blocking writers.
    """

    def __init__(self, max_queue_size: int = 256):
        self._max_queue_size = max_queue_size
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator["asyncio.Queue[TaskChangeEvent]"]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.add(queue)
        try:
            yield queue
        finally:
            self._subscribers.discard(queue)

    def publish(self, event_type: str, task: Task) -> TaskChangeEvent:
        event = TaskChangeEvent(event_type=event_type, row=TaskResponse.model_validate(task))
        for queue in list(self._subscribers):
            if queue.full():
                dropped = queue.get_nowait()
                logger.warning(
                    "Change feed subscriber lagging; dropped %s event for task %s",
                    dropped.event_type,
                    dropped.row.id,
                )
            queue.put_nowait(event)
        return event
