"""Model modules."""
from taskrelay.models.task import Task, TaskSource
from taskrelay.models.chat_session import ChatSession
from taskrelay.models.integration import OutboundMessageLog, WhatsAppMode

__all__ = [
    "Task",
    "TaskSource",
    "ChatSession",
    "OutboundMessageLog",
    "WhatsAppMode",
]
