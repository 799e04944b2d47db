"""Outbound message endpoint used by the reasoning workflow."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.core.exceptions import ValidationError
from taskrelay.database import get_db
from taskrelay.dependencies import get_messaging_service
from taskrelay.schemas.chat import ActionResponse, SendMessageRequest
from taskrelay.services.messaging_service import MessagingService

router = APIRouter()


@router.post(
    "/send-message",
    response_model=ActionResponse,
    response_model_exclude_none=True,
)
async def send_message(
    payload: SendMessageRequest,
    db: AsyncSession = Depends(get_db),
    messaging: MessagingService = Depends(get_messaging_service),
):
    """Send a WhatsApp message. Only works while the number has an active session."""
    if not payload.phoneNumber or not payload.message:
        raise ValidationError("phoneNumber and message are required")
    await messaging.send(db, payload.phoneNumber, payload.message)
    return ActionResponse(success=True, message="Message sent successfully")
