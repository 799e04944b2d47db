"""Schemas for the WhatsApp relay and the chat-integration task endpoints."""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TextContent(BaseModel):
    message: Optional[str] = None


class MediaContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    caption: Optional[str] = None


class DocumentContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    fileName: Optional[str] = None


class InboundMessage(BaseModel):
    """Z-API "on message received" webhook body."""

    model_config = ConfigDict(extra="allow")

    phone: str = ""
    fromMe: bool = False
    isGroup: bool = False
    messageId: Optional[str] = None
    text: Optional[TextContent] = None
    image: Optional[MediaContent] = None
    video: Optional[MediaContent] = None
    audio: Optional[Dict[str, Any]] = None
    document: Optional[DocumentContent] = None


class ForwardPayload(BaseModel):
    """Body forwarded to the reasoning agent."""

    source: str
    phoneNumber: str
    message: str
    messageId: Optional[str] = None
    timestamp: str


class ActionResponse(BaseModel):
    """Envelope used by the chat-facing endpoints."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class SendMessageRequest(BaseModel):
    phoneNumber: Optional[str] = None
    message: Optional[str] = None


class TodoListRequest(BaseModel):
    phoneNumber: Optional[str] = None


class TodoCreateRequest(BaseModel):
    phoneNumber: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None


class TodoUpdateRequest(BaseModel):
    phoneNumber: Optional[str] = None
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("completed", "isCompleted")
    )


class TodoDeleteRequest(BaseModel):
    phoneNumber: Optional[str] = None
    id: Optional[str] = None


class WhatsAppConfigRequest(BaseModel):
    action: str
    webhookUrl: Optional[str] = None


class SessionStatusResponse(BaseModel):
    phoneNumber: str
    active: bool
    expiresAt: Optional[datetime] = None
    lastMessageAt: Optional[datetime] = None
    conversationId: Optional[str] = None


class ConversationUpdate(BaseModel):
    conversationId: str
