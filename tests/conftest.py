"""Pytest configuration and fixtures."""
import asyncio
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional

import httpx
import pytest
import pytest_asyncio

TEST_DB_PATH = Path("test_taskrelay.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DB_PATH}")
os.environ.setdefault("WHATSAPP_MODE", "stub")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from taskrelay.config import Settings  # noqa: E402
from taskrelay.database import Database  # noqa: E402
from taskrelay.main import create_app  # noqa: E402
from taskrelay.models.integration import OutboundMessageLog  # noqa: E402
from taskrelay.schemas.enhancement import EnhancementResult  # noqa: E402
from taskrelay.services.change_feed import ChangeFeed  # noqa: E402
from taskrelay.services.enhancement_service import EnhancementCoordinator  # noqa: E402
from taskrelay.services.session_service import SessionService  # noqa: E402
from taskrelay.services.task_service import TaskService  # noqa: E402

ENHANCE_URL = "http://n8n.test/webhook/enhance"
CHAT_URL = "http://n8n.test/webhook/chat"


class Clock:
    """Controllable UTC clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


def naive(value: datetime) -> datetime:
    """SQLite hands datetimes back without tzinfo; compare on naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class FakeEnrichmentAgent:
    """Enrichment agent double that can observe persisted state mid-flight."""

    def __init__(
        self,
        result: Optional[dict] = None,
        *,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        observer: Optional[Callable] = None,
        configured: bool = True,
    ):
        self.result = result or {
            "enhancedDescription": "Buy 2L whole milk",
            "enhancementSteps": ["Go to store", "Pick 2L whole milk", "Pay"],
        }
        self.error = error
        self.delay = delay
        self.observer = observer
        self.configured = configured
        self.calls: List = []

    async def enhance(self, task) -> EnhancementResult:
        self.calls.append(task.id)
        if self.observer is not None:
            await self.observer(task)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return EnhancementResult.model_validate(self.result)


class FakeReasoningAgent:
    """Reasoning agent double recording forwarded payloads."""

    def __init__(self, *, error: Optional[Exception] = None, configured: bool = True):
        self.error = error
        self.configured = configured
        self.payloads: List = []

    async def forward(self, payload) -> None:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error


@pytest.fixture
def clock():
    return Clock()


@pytest_asyncio.fixture
async def database(tmp_path):
    """Fresh SQLite database per test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def change_feed():
    return ChangeFeed()


@pytest.fixture
def enrichment_agent():
    return FakeEnrichmentAgent()


@pytest.fixture
def coordinator(database, enrichment_agent, change_feed):
    return EnhancementCoordinator(database, enrichment_agent, change_feed, timeout=1.0)


@pytest.fixture
def task_service(coordinator, change_feed):
    return TaskService(coordinator, change_feed)


@pytest.fixture
def session_service(clock):
    return SessionService(ttl_hours=12, clock=clock)


async def count_outbound(db) -> int:
    result = await db.execute(select(func.count()).select_from(OutboundMessageLog))
    return result.scalar_one()


def mock_transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


def build_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        "N8N_WEBHOOK_URL": ENHANCE_URL,
        "N8N_CHAT_WEBHOOK_URL": CHAT_URL,
        "AGENT_RETRY_ATTEMPTS": 1,
        "ENHANCEMENT_TIMEOUT_SECONDS": 2.0,
        "WHATSAPP_MODE": "stub",
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def api_fakes():
    """Agent doubles wired into the API client."""
    return {
        "enrichment": FakeEnrichmentAgent(),
        "reasoning": FakeReasoningAgent(),
    }


@pytest.fixture
def client(tmp_path, clock, api_fakes):
    """Create a test client around a freshly built application."""
    app = create_app(
        build_settings(tmp_path),
        enrichment_agent=api_fakes["enrichment"],
        reasoning_agent=api_fakes["reasoning"],
        session_service=SessionService(ttl_hours=12, clock=clock),
    )
    with TestClient(app) as test_client:
        yield test_client
