"""Outbound WhatsApp messages, gated by an active chat session."""
import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from taskrelay.core.exceptions import NoActiveSessionError, UpstreamUnavailableError
from taskrelay.integrations.whatsapp import ProviderError, WhatsAppProvider
from taskrelay.middleware.metrics import chat_outbound_total
from taskrelay.models.integration import OutboundMessageLog
from taskrelay.services.session_service import SessionService

logger = logging.getLogger(__name__)


class MessagingService:
    """The only path to the provider's send call.

    The session check lives here rather than in the relay so that every
    caller, including the reasoning workflow hitting the send endpoint, is
    subject to it.
    """

    def __init__(self, provider: WhatsAppProvider, sessions: SessionService):
        self.provider = provider
        self.sessions = sessions

    async def send(self, db: AsyncSession, phone_number: str, message: str) -> Dict[str, Any]:
        if not await self.sessions.is_active(db, phone_number):
            chat_outbound_total.labels("rejected").inc()
            logger.warning("Refusing to message %s: no active session", phone_number)
            raise NoActiveSessionError()

        try:
            response = await self.provider.send_text(phone_number, message)
        except ProviderError as exc:
            chat_outbound_total.labels("failed").inc()
            logger.error("Failed to send message to %s: %s", phone_number, exc)
            await self._log(db, phone_number, message, "failed", {"error": str(exc)})
            raise UpstreamUnavailableError(str(exc)) from exc

        chat_outbound_total.labels("sent").inc()
        logger.info("Message sent to %s", phone_number)
        await self._log(db, phone_number, message, "sent", response)
        return response

    async def _log(
        self,
        db: AsyncSession,
        phone_number: str,
        message: str,
        status: str,
        response: Dict[str, Any],
    ) -> None:
        db.add(
            OutboundMessageLog(
                phone_number=phone_number,
                message=message,
                mode=self.provider.mode,
                status=status,
                response=response,
            )
        )
        await db.commit()
