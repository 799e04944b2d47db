"""Schema modules."""
from taskrelay.schemas.task import TaskCreate, TaskUpdate, TaskResponse, TaskChangeEvent
from taskrelay.schemas.enhancement import EnhancementRequest, EnhancementResult
from taskrelay.schemas.chat import (
    ActionResponse,
    ConversationUpdate,
    ForwardPayload,
    InboundMessage,
    SendMessageRequest,
    SessionStatusResponse,
    TodoCreateRequest,
    TodoDeleteRequest,
    TodoListRequest,
    TodoUpdateRequest,
    WhatsAppConfigRequest,
)
