"""n8n workflow clients: task enrichment and chat reasoning."""
import logging
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from taskrelay.models.task import Task
from taskrelay.schemas.chat import ForwardPayload
from taskrelay.schemas.enhancement import EnhancementRequest, EnhancementResult

logger = logging.getLogger(__name__)

RETRY_WAIT_MAX_SECONDS = 10


def attempt_timeout(total: float, attempts: int) -> float:
    """Per-attempt HTTP timeout that leaves room for every retry within ``total``."""
    attempts = max(1, attempts)
    budget = total - RETRY_WAIT_MAX_SECONDS * (attempts - 1)
    return min(total, max(1.0, budget / attempts))


class AgentError(Exception):
    """An external n8n workflow could not be used."""


class AgentNotConfiguredError(AgentError):
    """No webhook URL is configured for the workflow."""


class AgentResponseError(AgentError):
    """The workflow was reached but answered with an error or garbage."""


class EnrichmentAgent:
    """Calls the enrichment workflow and parses its structured result."""

    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        timeout: float = 60.0,
        attempts: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    async def enhance(self, task: Task) -> EnhancementResult:
        """Send {taskId, title, description} and return the enrichment."""
        if not self.webhook_url:
            raise AgentNotConfiguredError("N8N_WEBHOOK_URL is not configured")

        body = EnhancementRequest(
            taskId=task.id,
            title=task.title,
            description=task.description,
        ).model_dump(mode="json")

        data: dict = {}
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                stop=stop_after_attempt(self.attempts),
                wait=wait_exponential(multiplier=1, min=1, max=RETRY_WAIT_MAX_SECONDS),
                reraise=True,
            ):
                with attempt:
                    data = await self._post(body)
        except httpx.HTTPError as exc:
            raise AgentError(f"Enrichment workflow unreachable: {exc}") from exc

        try:
            return EnhancementResult.model_validate(data)
        except PydanticValidationError as exc:
            raise AgentResponseError(f"Malformed enrichment result: {exc.error_count()} errors") from exc

    async def _post(self, body: dict) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.webhook_url, json=body)
        if not response.is_success:
            raise AgentResponseError(
                f"Enrichment workflow failed: {response.status_code} {response.reason_phrase}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise AgentResponseError("Enrichment workflow returned non-JSON body") from exc
        if not isinstance(data, dict):
            raise AgentResponseError("Enrichment workflow returned non-object body")
        return data


class ReasoningAgent:
    """Forwards chat messages to the reasoning workflow.

    Forwarding is not retried: the workflow acts on the message, and a
    duplicate delivery would duplicate its side effects.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    async def forward(self, payload: ForwardPayload) -> None:
        if not self.webhook_url:
            raise AgentNotConfiguredError("N8N chat webhook is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.webhook_url, json=payload.model_dump())
        except httpx.HTTPError as exc:
            raise AgentError(f"Failed to forward message to n8n: {exc}") from exc

        if not response.is_success:
            raise AgentResponseError(f"Failed to forward message to n8n: {response.status_code}")
