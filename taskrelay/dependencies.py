"""FastAPI dependencies resolving the services built by the app factory."""
from fastapi import Request

from taskrelay.config import Settings
from taskrelay.integrations.whatsapp import WhatsAppProvider
from taskrelay.services.change_feed import ChangeFeed
from taskrelay.services.chat_relay import ChatRelay
from taskrelay.services.enhancement_service import EnhancementCoordinator
from taskrelay.services.messaging_service import MessagingService
from taskrelay.services.session_service import SessionService
from taskrelay.services.task_service import TaskService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_enhancement_coordinator(request: Request) -> EnhancementCoordinator:
    return request.app.state.enhancement


def get_change_feed(request: Request) -> ChangeFeed:
    return request.app.state.change_feed


def get_session_service(request: Request) -> SessionService:
    return request.app.state.sessions


def get_messaging_service(request: Request) -> MessagingService:
    return request.app.state.messaging


def get_chat_relay(request: Request) -> ChatRelay:
    return request.app.state.chat_relay


def get_whatsapp_provider(request: Request) -> WhatsAppProvider:
    return request.app.state.whatsapp
