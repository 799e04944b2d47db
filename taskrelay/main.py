"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from taskrelay.api.v1 import messages, tasks, todos, whatsapp
from taskrelay.config import Settings, settings as default_settings
from taskrelay.database import Database
from taskrelay.integrations.n8n import EnrichmentAgent, ReasoningAgent, attempt_timeout
from taskrelay.integrations.whatsapp import WhatsAppProvider
from taskrelay.logging_config import setup_logging
from taskrelay.middleware.exception_handlers import configure_exception_handlers
from taskrelay.middleware.metrics import setup_metrics
from taskrelay.services.change_feed import ChangeFeed
from taskrelay.services.chat_relay import ChatRelay
from taskrelay.services.enhancement_service import EnhancementCoordinator
from taskrelay.services.messaging_service import MessagingService
from taskrelay.services.session_service import SessionService
from taskrelay.services.task_service import TaskService


def create_app(
    settings: Optional[Settings] = None,
    *,
    enrichment_agent: Optional[EnrichmentAgent] = None,
    reasoning_agent: Optional[ReasoningAgent] = None,
    whatsapp_provider: Optional[WhatsAppProvider] = None,
    session_service: Optional[SessionService] = None,
) -> FastAPI:
    """Build the application and every service it shares across requests."""
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    change_feed = ChangeFeed()
    enrichment_agent = enrichment_agent or EnrichmentAgent(
        settings.N8N_WEBHOOK_URL,
        timeout=attempt_timeout(settings.ENHANCEMENT_TIMEOUT_SECONDS, settings.AGENT_RETRY_ATTEMPTS),
        attempts=settings.AGENT_RETRY_ATTEMPTS,
    )
    reasoning_agent = reasoning_agent or ReasoningAgent(
        settings.chat_webhook_url,
        timeout=settings.CHAT_FORWARD_TIMEOUT_SECONDS,
    )
    whatsapp_provider = whatsapp_provider or WhatsAppProvider(
        settings.WHATSAPP_MODE,
        base_url=settings.ZAPI_BASE_URL,
        instance_id=settings.ZAPI_INSTANCE_ID,
        token=settings.ZAPI_TOKEN,
        client_token=settings.ZAPI_CLIENT_TOKEN,
        timeout=settings.WHATSAPP_TIMEOUT_SECONDS,
    )
    sessions = session_service or SessionService(ttl_hours=settings.SESSION_TTL_HOURS)
    coordinator = EnhancementCoordinator(
        database,
        enrichment_agent,
        change_feed,
        timeout=settings.ENHANCEMENT_TIMEOUT_SECONDS,
    )
    messaging = MessagingService(whatsapp_provider, sessions)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        # Startup
        await database.create_all()
        yield
        # Shutdown
        await coordinator.drain()
        await database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.change_feed = change_feed
    app.state.enhancement = coordinator
    app.state.task_service = TaskService(coordinator, change_feed)
    app.state.sessions = sessions
    app.state.whatsapp = whatsapp_provider
    app.state.messaging = messaging
    app.state.chat_relay = ChatRelay(
        sessions,
        messaging,
        reasoning_agent,
        activation_keyword=settings.ACTIVATION_KEYWORD,
        source_tag=settings.CHAT_SOURCE_TAG,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_metrics(app)

    prefix = settings.API_V1_PREFIX
    configure_exception_handlers(
        app,
        envelope_prefixes=(f"{prefix}/todos", f"{prefix}/send-message", f"{prefix}/whatsapp"),
    )
    app.include_router(tasks.router, prefix=f"{prefix}/tasks", tags=["tasks"])
    app.include_router(todos.router, prefix=f"{prefix}/todos", tags=["todos"])
    app.include_router(whatsapp.router, prefix=f"{prefix}/whatsapp", tags=["whatsapp"])
    app.include_router(messages.router, prefix=prefix, tags=["messages"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        health_status = {
            "status": "ok",
            "checks": {
                "database": "unknown",
            },
        }

        try:
            async with database.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["checks"]["database"] = "ok"
        except Exception as e:
            health_status["checks"]["database"] = f"error: {str(e)}"
            health_status["status"] = "degraded"

        return health_status

    return app


app = create_app()
