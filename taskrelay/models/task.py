"""Task model."""
from datetime import datetime, timezone
from enum import Enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, Text
from taskrelay.database import Base
from taskrelay.db.types import GUID, JSONBType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskSource(str, Enum):
    """Where a task was created; drives auto-enhancement."""

    WEB = "web"
    WHATSAPP = "whatsapp"


class Task(Base):
    """Task tracked from the web UI or the WhatsApp relay."""

    __tablename__ = "tasks"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    is_completed = Column(Boolean, nullable=False, default=False)
    source = Column(
        SQLEnum(TaskSource, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TaskSource.WEB,
        index=True,
    )
    enhanced = Column(Boolean, nullable=False, default=False)
    is_enhancing = Column(Boolean, nullable=False, default=False)
    enhanced_description = Column(Text, nullable=True)
    enhancement_steps = Column(JSONBType(), nullable=True)  # ordered list of step strings
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
