"""WhatsApp provider integration (Z-API) with stub and live modes."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from taskrelay.models.integration import WhatsAppMode

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """The WhatsApp provider rejected a call or could not be reached."""


class WhatsAppProvider:
    """Z-API client. Stub mode answers locally and never touches the network."""

    def __init__(
        self,
        mode: str = "stub",
        *,
        base_url: str = "https://api.z-api.io",
        instance_id: Optional[str] = None,
        token: Optional[str] = None,
        client_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.mode = WhatsAppMode(mode.lower())
        self.base_url = base_url.rstrip("/")
        self.instance_id = instance_id
        self.token = token
        self.client_token = client_token
        self.timeout = timeout
        self._transport = transport

        if self.mode == WhatsAppMode.LIVE and not self.credentials_configured:
            logger.error("Z-API credentials not configured")

    @property
    def credentials_configured(self) -> bool:
        return bool(self.instance_id and self.token and self.client_token)

    def _build_url(self, path: str) -> str:
        if not self.credentials_configured:
            raise ProviderError("Z-API credentials not configured")
        return f"{self.base_url}/instances/{self.instance_id}/token/{self.token}/{path}"

    def _build_headers(self) -> Dict[str, str]:
        return {"Client-Token": self.client_token or ""}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = self._build_url(path)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, json=json, headers=self._build_headers())
        except httpx.HTTPError as exc:
            raise ProviderError(f"Z-API unreachable: {exc}") from exc

        if not response.is_success:
            raise ProviderError(f"Z-API error: {response.status_code} - {response.text[:500]}")
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text[:500]}

    async def _request_idempotent(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(ProviderError),
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        ):
            with attempt:
                return await self._request(method, path, **kwargs)

    async def send_text(self, phone: str, message: str) -> Dict[str, Any]:
        """Send a text message."""
        if self.mode == WhatsAppMode.STUB:
            return {
                "zaapId": f"stub_{datetime.now(timezone.utc).timestamp()}",
                "messageId": f"stub_msg_{phone}",
                "phone": phone,
            }
        # Not retried: a timed-out send may still have been delivered.
        return await self._request("POST", "send-text", json={"phone": phone, "message": message})

    async def get_status(self) -> Dict[str, Any]:
        """Instance connection status."""
        if self.mode == WhatsAppMode.STUB:
            return {"connected": True, "session": True, "smartphoneConnected": True, "mode": "stub"}
        return await self._request_idempotent("GET", "status")

    async def get_qr_code(self) -> Dict[str, Any]:
        """QR code image (base64 in `value`) for pairing the phone."""
        if self.mode == WhatsAppMode.STUB:
            return {"value": "data:image/png;base64,"}
        return await self._request_idempotent("GET", "qr-code/image")

    async def configure_webhook(self, webhook_url: str) -> Dict[str, Any]:
        """Point the provider's on-message-received webhook at webhook_url."""
        if self.mode == WhatsAppMode.STUB:
            return {"value": True, "webhookUrl": webhook_url}
        return await self._request_idempotent(
            "PUT", "update-webhook-received", json={"value": webhook_url}
        )

    async def restart(self) -> Dict[str, Any]:
        if self.mode == WhatsAppMode.STUB:
            return {"value": True}
        return await self._request("GET", "restart")

    async def disconnect(self) -> Dict[str, Any]:
        if self.mode == WhatsAppMode.STUB:
            return {"value": True}
        return await self._request("GET", "disconnect")
