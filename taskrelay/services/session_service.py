"""Time-boxed WhatsApp chat sessions.

A phone number may talk to the assistant only while it has an active session.
Sessions are opened (or extended) by the activation keyword and lapse on their
own once ``expires_at`` passes; the periodic sweep only keeps the active set
small, the predicate never relies on it.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.crud.chat_session import chat_session
from taskrelay.models.chat_session import ChatSession
from taskrelay.models.task import utcnow

logger = logging.getLogger(__name__)


class SessionService:
    """Activation, expiry and gating rules for chat sessions."""

    def __init__(self, ttl_hours: int = 12, clock: Callable[[], datetime] = utcnow):
        self.ttl = timedelta(hours=ttl_hours)
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    async def activate(self, db: AsyncSession, phone_number: str) -> ChatSession:
        """Open a session, or extend the one already running."""
        now = self.now()
        expires_at = now + self.ttl

        existing = await chat_session.get_active(db, phone_number=phone_number, now=now)
        if existing is not None:
            logger.info("Extending chat session for %s", phone_number)
            return await chat_session.update(
                db,
                db_obj=existing,
                obj_in={"expires_at": expires_at, "last_message_at": now},
            )

        logger.info("Opening chat session for %s", phone_number)
        return await chat_session.create(
            db,
            obj_in={
                "phone_number": phone_number,
                "is_active": True,
                "expires_at": expires_at,
                "last_message_at": now,
            },
        )

    async def get_active(self, db: AsyncSession, phone_number: str) -> Optional[ChatSession]:
        return await chat_session.get_active(db, phone_number=phone_number, now=self.now())

    async def is_active(self, db: AsyncSession, phone_number: str) -> bool:
        return await self.get_active(db, phone_number) is not None

    async def touch(self, db: AsyncSession, phone_number: str) -> int:
        """Record inbound activity. Does not extend expiry."""
        return await chat_session.update_active(
            db, phone_number=phone_number, values={"last_message_at": self.now()}
        )

    async def set_conversation_id(
        self, db: AsyncSession, phone_number: str, conversation_id: str
    ) -> int:
        return await chat_session.update_active(
            db, phone_number=phone_number, values={"conversation_id": conversation_id}
        )

    async def expire(self, db: AsyncSession, phone_number: str) -> int:
        count = await chat_session.update_active(
            db, phone_number=phone_number, values={"is_active": False}
        )
        logger.info("Expired %d chat session(s) for %s", count, phone_number)
        return count

    async def sweep_expired(self, db: AsyncSession) -> int:
        count = await chat_session.deactivate_expired(db, now=self.now())
        if count:
            logger.info("Deactivated %d expired chat session(s)", count)
        return count
