"""Celery tasks for chat session housekeeping."""
import asyncio
import logging

from taskrelay.config import settings
from taskrelay.database import Database
from taskrelay.services.session_service import SessionService
from taskrelay.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def run_sweep(database: Database, sessions: SessionService) -> int:
    """Deactivate lapsed sessions; returns how many rows changed."""
    async with database.session() as db:
        return await sessions.sweep_expired(db)


@celery_app.task
def sweep_expired_sessions():
    """Mark expired chat sessions inactive (called by Celery Beat)."""
    async def _sweep():
        database = Database(settings.DATABASE_URL)
        try:
            return await run_sweep(database, SessionService(ttl_hours=settings.SESSION_TTL_HOURS))
        finally:
            await database.dispose()

    count = asyncio.run(_sweep())
    logger.info("Session sweep deactivated %d row(s)", count)
    return count
