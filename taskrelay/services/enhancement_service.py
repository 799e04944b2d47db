"""AI enhancement of task descriptions.

Per task the flags move Idle -> Enhancing -> Enhanced, or back to Idle when
the enrichment workflow fails. ``is_enhancing`` is persisted before the
workflow is called so observers can show progress, and every failure path
clears it again.
"""
import asyncio
import logging
from typing import Optional, Set
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.core.exceptions import NotFoundError, UpstreamUnavailableError
from taskrelay.crud.task import task as task_crud
from taskrelay.database import Database
from taskrelay.integrations.n8n import AgentError, EnrichmentAgent
from taskrelay.middleware.metrics import enhancements_total
from taskrelay.models.task import Task
from taskrelay.services.change_feed import UPDATE, ChangeFeed

logger = logging.getLogger(__name__)


class EnhancementError(Exception):
    """The enrichment workflow failed; the task's in-flight flag was cleared."""

    def __init__(self, task_id: UUID, reason: str):
        super().__init__(f"Enhancement of task {task_id} failed: {reason}")
        self.task_id = task_id
        self.reason = reason


class EnhancementCoordinator:
    """Runs enrichment either inline (caller awaits) or as a detached job."""

    def __init__(
        self,
        database: Database,
        agent: EnrichmentAgent,
        change_feed: ChangeFeed,
        *,
        timeout: float = 60.0,
    ):
        self.database = database
        self.agent = agent
        self.change_feed = change_feed
        self.timeout = timeout
        self._jobs: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._jobs)

    async def enhance(self, db: AsyncSession, task_id: UUID) -> Task:
        """Enhance a task and return it once the result has been stored.

        Raises NotFoundError for an unknown id (before any side effect) and
        UpstreamUnavailableError when the workflow fails or times out.
        """
        task_obj = await task_crud.get(db, id=task_id)
        if task_obj is None:
            raise NotFoundError("Task not found")
        if not self.agent.configured:
            raise UpstreamUnavailableError("Enhancement workflow is not configured")

        task_obj = await self._mark_enhancing(db, task_obj)
        try:
            return await self._run(db, task_obj.id, mode="sync")
        except EnhancementError as exc:
            raise UpstreamUnavailableError(
                "Failed to enhance task. Please try again later."
            ) from exc

    async def schedule(self, db: AsyncSession, task_obj: Task) -> Task:
        """Flag the task and enhance it in the background.

        Returns as soon as the flag is persisted; the detached job clears it
        on its own whatever the outcome.
        """
        if not self.agent.configured:
            logger.info("Enhancement workflow not configured; task %s left as is", task_obj.id)
            return task_obj

        task_obj = await self._mark_enhancing(db, task_obj)
        job = asyncio.create_task(self._run_detached(task_obj.id), name=f"enhance-{task_obj.id}")
        self._jobs.add(job)
        job.add_done_callback(self._jobs.discard)
        logger.info("Dispatched background enhancement for task %s", task_obj.id)
        return task_obj

    async def drain(self) -> None:
        """Wait for every background job started so far."""
        while self._jobs:
            await asyncio.gather(*list(self._jobs), return_exceptions=True)

    async def _mark_enhancing(self, db: AsyncSession, task_obj: Task) -> Task:
        task_obj = await task_crud.update(db, db_obj=task_obj, obj_in={"is_enhancing": True})
        self.change_feed.publish(UPDATE, task_obj)
        return task_obj

    async def _run(self, db: AsyncSession, task_id: UUID, *, mode: str) -> Task:
        try:
            return await self._call_and_store(db, task_id, mode=mode)
        except asyncio.CancelledError:
            enhancements_total.labels(mode, "cancelled").inc()
            logger.warning("Enhancement of task %s cancelled (%s)", task_id, mode)
            try:
                await asyncio.shield(self._clear_in_flight(db, task_id))
            except Exception:
                logger.exception("Could not clear in-flight flag of task %s", task_id)
            raise

    async def _call_and_store(self, db: AsyncSession, task_id: UUID, *, mode: str) -> Task:
        task_obj = await task_crud.get(db, id=task_id)
        if task_obj is None:
            raise NotFoundError("Task not found")

        try:
            result = await asyncio.wait_for(self.agent.enhance(task_obj), timeout=self.timeout)
        except Exception as exc:
            enhancements_total.labels(mode, "failure").inc()
            await self._clear_in_flight(db, task_id)
            if isinstance(exc, asyncio.TimeoutError):
                reason = f"no answer within {self.timeout:g}s"
            elif isinstance(exc, AgentError):
                reason = str(exc)
            else:
                raise
            logger.warning("Enhancement of task %s failed (%s): %s", task_id, mode, reason)
            raise EnhancementError(task_id, reason) from exc

        current = await task_crud.get(db, id=task_id)
        if current is None:
            # Deleted while the workflow was running; nothing left to update.
            logger.info("Task %s deleted during enhancement; result dropped", task_id)
            raise NotFoundError("Task not found")

        enhanced = await task_crud.update(
            db,
            db_obj=current,
            obj_in={
                "enhanced_description": result.enhanced_description,
                "enhancement_steps": result.enhancement_steps,
                "enhanced": True,
                "is_enhancing": False,
            },
        )
        self.change_feed.publish(UPDATE, enhanced)
        enhancements_total.labels(mode, "success").inc()
        logger.info("Task %s enhanced (%s)", task_id, mode)
        return enhanced

    async def _clear_in_flight(self, db: AsyncSession, task_id: UUID) -> Optional[Task]:
        current = await task_crud.get(db, id=task_id)
        if current is None:
            return None
        cleared = await task_crud.update(db, db_obj=current, obj_in={"is_enhancing": False})
        self.change_feed.publish(UPDATE, cleared)
        return cleared

    async def _run_detached(self, task_id: UUID) -> None:
        try:
            async with self.database.session() as db:
                await self._run(db, task_id, mode="background")
        except (EnhancementError, NotFoundError):
            pass  # already logged by _run
        except Exception:
            logger.exception("Background enhancement of task %s crashed", task_id)
