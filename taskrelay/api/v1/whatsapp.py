"""WhatsApp endpoints: inbound webhook, provider admin and chat sessions."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.core.exceptions import UpstreamUnavailableError, ValidationError
from taskrelay.database import get_db
from taskrelay.dependencies import get_chat_relay, get_session_service, get_whatsapp_provider
from taskrelay.integrations.whatsapp import ProviderError, WhatsAppProvider
from taskrelay.schemas.chat import (
    ActionResponse,
    ConversationUpdate,
    InboundMessage,
    SessionStatusResponse,
    WhatsAppConfigRequest,
)
from taskrelay.services.chat_relay import ChatRelay
from taskrelay.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=ActionResponse, response_model_exclude_none=True)
async def receive_message(
    inbound: InboundMessage,
    db: AsyncSession = Depends(get_db),
    relay: ChatRelay = Depends(get_chat_relay),
):
    """Receive a message from Z-API and relay it."""
    outcome = await relay.handle(db, inbound)
    body = ActionResponse(success=outcome.success, message=outcome.message, error=outcome.error)
    return JSONResponse(status_code=outcome.status_code, content=body.model_dump(exclude_none=True))


@router.get("/webhook", response_model=ActionResponse, response_model_exclude_none=True)
async def webhook_status():
    """Webhook verification endpoint."""
    return ActionResponse(success=True, message="WhatsApp webhook endpoint is active (Z-API)")


@router.get("/config")
async def get_instance_status(provider: WhatsAppProvider = Depends(get_whatsapp_provider)):
    """Provider connection status."""
    try:
        instance_status = await provider.get_status()
    except ProviderError as exc:
        raise UpstreamUnavailableError(str(exc)) from exc
    return {"success": True, "status": instance_status}


@router.post("/config")
async def manage_instance(
    payload: WhatsAppConfigRequest,
    provider: WhatsAppProvider = Depends(get_whatsapp_provider),
):
    """Pass-through administration of the provider instance."""
    try:
        if payload.action == "getQR":
            qr_data = await provider.get_qr_code()
            return {
                "success": True,
                "qrCode": qr_data.get("value"),
                "message": "QR Code retrieved successfully",
            }
        if payload.action == "getStatus":
            instance_status = await provider.get_status()
            return {
                "success": True,
                "status": instance_status,
                "message": "Status retrieved successfully",
            }
        if payload.action == "configureWebhook":
            if not payload.webhookUrl:
                raise ValidationError("webhookUrl is required")
            await provider.configure_webhook(payload.webhookUrl)
            return {"success": True, "message": "Webhook configured successfully"}
        if payload.action == "restart":
            await provider.restart()
            return {"success": True, "message": "Instance restarted successfully"}
        if payload.action == "disconnect":
            await provider.disconnect()
            return {"success": True, "message": "Instance disconnected successfully"}
    except ProviderError as exc:
        logger.error("Config action %s failed: %s", payload.action, exc)
        raise UpstreamUnavailableError(str(exc)) from exc

    raise ValidationError("Invalid action")


@router.get("/sessions/{phone_number}", response_model=SessionStatusResponse)
async def get_session(
    phone_number: str,
    db: AsyncSession = Depends(get_db),
    sessions: SessionService = Depends(get_session_service),
):
    """Report whether the number currently has an active session."""
    active = await sessions.get_active(db, phone_number)
    if active is None:
        return SessionStatusResponse(phoneNumber=phone_number, active=False)
    return SessionStatusResponse(
        phoneNumber=phone_number,
        active=True,
        expiresAt=active.expires_at,
        lastMessageAt=active.last_message_at,
        conversationId=active.conversation_id,
    )


@router.delete(
    "/sessions/{phone_number}",
    response_model=ActionResponse,
    response_model_exclude_none=True,
)
async def expire_session(
    phone_number: str,
    db: AsyncSession = Depends(get_db),
    sessions: SessionService = Depends(get_session_service),
):
    """End every active session for the number."""
    count = await sessions.expire(db, phone_number)
    return ActionResponse(success=True, message=f"{count} session(s) expired")


@router.post(
    "/sessions/{phone_number}/conversation",
    response_model=ActionResponse,
    response_model_exclude_none=True,
)
async def set_conversation(
    phone_number: str,
    payload: ConversationUpdate,
    db: AsyncSession = Depends(get_db),
    sessions: SessionService = Depends(get_session_service),
):
    """Store the reasoning workflow's conversation id on the active session."""
    count = await sessions.set_conversation_id(db, phone_number, payload.conversationId)
    if count == 0:
        return ActionResponse(success=False, error="No active session for this phone number")
    return ActionResponse(success=True, message="Conversation id stored")
