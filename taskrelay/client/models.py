"""Task representation held by clients."""
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from taskrelay.models.task import TaskSource, utcnow
from taskrelay.schemas.task import CamelModel

TEMP_ID_PREFIX = "temp-"


class ClientTask(CamelModel):
    """A task as the client sees it. Placeholder tasks carry a ``temp-`` id."""

    id: str
    title: str
    description: str = ""
    is_completed: bool = False
    source: TaskSource = TaskSource.WEB
    enhanced: bool = False
    is_enhancing: bool = False
    enhanced_description: Optional[str] = None
    enhancement_steps: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_placeholder(self) -> bool:
        return self.id.startswith(TEMP_ID_PREFIX)

    @classmethod
    def placeholder(cls, title: str, description: Optional[str] = None) -> "ClientTask":
        now = utcnow()
        return cls(
            id=f"{TEMP_ID_PREFIX}{uuid4().hex}",
            title=title,
            description=description or "",
            created_at=now,
            updated_at=now,
        )
