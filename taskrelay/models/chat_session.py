"""WhatsApp chat session model."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from taskrelay.database import Base
from taskrelay.db.types import GUID
from taskrelay.models.task import utcnow


class ChatSession(Base):
    """Time-boxed window during which a phone number may talk to the assistant.

    Several historical rows may exist per phone number; only the most recent
    active, unexpired row is authoritative.
    """

    __tablename__ = "whatsapp_sessions"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    phone_number = Column(String(32), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    last_message_at = Column(DateTime(timezone=True), default=utcnow, nullable=True)
    conversation_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
