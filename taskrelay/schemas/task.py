"""Task schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, StrictBool, StrictStr
from pydantic.alias_generators import to_camel

from taskrelay.models.task import TaskSource


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON while accepting snake_case input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class TaskCreate(CamelModel):
    """Task creation schema."""

    title: StrictStr
    description: Optional[StrictStr] = None


class TaskUpdate(CamelModel):
    """Partial task update; only the fields actually sent are applied."""

    title: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    is_completed: Optional[StrictBool] = None
    enhanced: Optional[StrictBool] = None
    is_enhancing: Optional[StrictBool] = None
    enhanced_description: Optional[StrictStr] = None
    enhancement_steps: Optional[List[StrictStr]] = None


class TaskResponse(CamelModel):
    """Task response schema."""

    id: UUID
    title: str
    description: str = ""
    is_completed: bool = False
    source: TaskSource
    enhanced: bool = False
    is_enhancing: bool = False
    enhanced_description: Optional[str] = None
    enhancement_steps: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime


class TaskChangeEvent(CamelModel):
    """Change feed entry for the tasks table."""

    event_type: str  # insert, update or delete
    row: TaskResponse
