"""Chat session CRUD operations."""
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.crud.base import CRUDBase
from taskrelay.models.chat_session import ChatSession


class CRUDChatSession(CRUDBase[ChatSession, dict, dict]):
    """CRUD operations for ChatSession."""

    async def get_active(
        self,
        db: AsyncSession,
        *,
        phone_number: str,
        now: datetime,
    ) -> Optional[ChatSession]:
        """Most recent active, unexpired row for the number."""
        query = (
            select(ChatSession)
            .where(
                ChatSession.phone_number == phone_number,
                ChatSession.is_active == True,  # noqa: E712
                ChatSession.expires_at > now,
            )
            .order_by(ChatSession.expires_at.desc(), ChatSession.created_at.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def update_active(
        self,
        db: AsyncSession,
        *,
        phone_number: str,
        values: dict,
    ) -> int:
        """Apply values to every active row for the number, expired or not."""
        result = await db.execute(
            update(ChatSession)
            .where(
                ChatSession.phone_number == phone_number,
                ChatSession.is_active == True,  # noqa: E712
            )
            .values(**values)
        )
        await db.commit()
        return result.rowcount or 0

    async def deactivate_expired(self, db: AsyncSession, *, now: datetime) -> int:
        """Mark every active row whose window has passed as inactive."""
        result = await db.execute(
            update(ChatSession)
            .where(
                ChatSession.is_active == True,  # noqa: E712
                ChatSession.expires_at < now,
            )
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        await db.commit()
        return result.rowcount or 0


chat_session = CRUDChatSession(ChatSession)
