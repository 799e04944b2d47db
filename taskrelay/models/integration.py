"""Integration models."""
from sqlalchemy import Column, String, DateTime, Text, Enum as SQLEnum
import uuid
from enum import Enum
from taskrelay.database import Base
from taskrelay.db.types import JSONBType, GUID
from taskrelay.models.task import utcnow


class WhatsAppMode(str, Enum):
    """WhatsApp provider mode."""

    STUB = "stub"
    LIVE = "live"


class OutboundMessageLog(Base):
    """Outbound WhatsApp message log (for stub mode and debugging)."""

    __tablename__ = "outbound_message_logs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    phone_number = Column(String(32), nullable=False, index=True)
    message = Column(Text, nullable=False)
    mode = Column(
        SQLEnum(WhatsAppMode, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    status = Column(String(20), nullable=False)  # sent or failed
    response = Column(JSONBType(), nullable=True)  # Provider response or error
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
