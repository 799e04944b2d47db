"""Inbound WhatsApp message relay.

Each message is evaluated in a fixed order: own and group messages are
dropped, the activation keyword opens a session and stops, messages from
numbers without an active session are dropped without any reply, and the
rest are forwarded to the reasoning workflow.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.core.exceptions import ValidationError
from taskrelay.integrations.n8n import AgentError, AgentNotConfiguredError, ReasoningAgent
from taskrelay.middleware.metrics import chat_inbound_total
from taskrelay.models.task import utcnow
from taskrelay.schemas.chat import ForwardPayload, InboundMessage
from taskrelay.services.messaging_service import MessagingService
from taskrelay.services.session_service import SessionService

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "🤖 *TodoList Chatbot Activated!*\n\n"
    "You can now interact with the chatbot for the next {hours} hours.\n\n"
    "Send me any message and I'll help you manage your tasks!"
)
UNAVAILABLE_MESSAGE = "⚠️ Chatbot is temporarily unavailable. Please try again later."
AUDIO_PLACEHOLDER = "[Audio message]"


@dataclass
class RelayOutcome:
    """What happened to one inbound message."""

    decision: str
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    status_code: int = 200


def extract_text(inbound: InboundMessage) -> str:
    """Pick the text of whichever content variant is present."""
    if inbound.text and inbound.text.message:
        return inbound.text.message
    if inbound.image and inbound.image.caption:
        return inbound.image.caption
    if inbound.video and inbound.video.caption:
        return inbound.video.caption
    if inbound.audio is not None:
        return AUDIO_PLACEHOLDER
    if inbound.document is not None:
        return f"[Document: {inbound.document.fileName or 'file'}]"
    return ""


def normalize_sender(phone: str) -> str:
    return phone.replace("@s.whatsapp.net", "").replace("-group", "")


class ChatRelay:
    """Applies session gating to inbound messages and forwards the survivors."""

    def __init__(
        self,
        sessions: SessionService,
        messaging: MessagingService,
        agent: ReasoningAgent,
        *,
        activation_keyword: str = "#todolist",
        source_tag: str = "whatsapp_chatbot",
    ):
        self.sessions = sessions
        self.messaging = messaging
        self.agent = agent
        self.activation_keyword = activation_keyword.lower()
        self.source_tag = source_tag

    def _outcome(self, decision: str, **kwargs) -> RelayOutcome:
        chat_inbound_total.labels(decision).inc()
        return RelayOutcome(decision=decision, **kwargs)

    async def handle(self, db: AsyncSession, inbound: InboundMessage) -> RelayOutcome:
        if inbound.fromMe:
            return self._outcome("own", success=True, message="Own message ignored")

        if inbound.isGroup:
            return self._outcome("group", success=True, message="Group message ignored")

        text = extract_text(inbound)
        sender = normalize_sender(inbound.phone)
        if not sender:
            chat_inbound_total.labels("rejected").inc()
            raise ValidationError("phone is required")
        logger.info("Message from %s: %s", sender, text[:200])

        if self.activation_keyword in text.lower():
            return await self._activate(db, sender)

        if not await self.sessions.is_active(db, sender):
            logger.info("Message ignored - no active session for %s", sender)
            return self._outcome(
                "no_session", success=True, message="No active session - message ignored"
            )

        await self.sessions.touch(db, sender)

        if not self.agent.configured:
            logger.error("N8N chat webhook not configured")
            await self._apologize(db, sender)
            return self._outcome("unavailable", success=False, error="N8N not configured")

        payload = ForwardPayload(
            source=self.source_tag,
            phoneNumber=sender,
            message=text,
            messageId=inbound.messageId,
            timestamp=utcnow().isoformat(),
        )
        try:
            await self.agent.forward(payload)
        except AgentNotConfiguredError:
            await self._apologize(db, sender)
            return self._outcome("unavailable", success=False, error="N8N not configured")
        except AgentError as exc:
            logger.error("WhatsApp webhook error for %s: %s", sender, exc)
            return self._outcome(
                "forward_failed", success=False, error=str(exc), status_code=500
            )

        logger.info("Message from %s forwarded to n8n", sender)
        return self._outcome("forwarded", success=True, message="Message forwarded to n8n")

    async def _activate(self, db: AsyncSession, sender: str) -> RelayOutcome:
        await self.sessions.activate(db, sender)
        hours = int(self.sessions.ttl.total_seconds() // 3600)
        try:
            await self.messaging.send(db, sender, WELCOME_MESSAGE.format(hours=hours))
        except HTTPException as exc:
            return self._outcome(
                "activated", success=False, error=str(exc.detail), status_code=500
            )
        return self._outcome("activated", success=True, message="Session activated")

    async def _apologize(self, db: AsyncSession, sender: str) -> None:
        try:
            await self.messaging.send(db, sender, UNAVAILABLE_MESSAGE)
        except HTTPException as exc:
            logger.error("Could not deliver unavailability notice to %s: %s", sender, exc.detail)
