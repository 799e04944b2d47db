"""Tests for session-gated outbound messaging."""
import json

import httpx
import pytest
from sqlalchemy import select

from taskrelay.core.exceptions import NoActiveSessionError, UpstreamUnavailableError
from taskrelay.integrations.whatsapp import WhatsAppProvider
from taskrelay.models.integration import OutboundMessageLog
from taskrelay.services.messaging_service import MessagingService

from conftest import count_outbound, mock_transport

PHONE = "5511999999999"


def live_provider(handler) -> WhatsAppProvider:
    return WhatsAppProvider(
        "live",
        base_url="https://zapi.test",
        instance_id="inst",
        token="tok",
        client_token="client",
        transport=mock_transport(handler),
    )


@pytest.mark.asyncio
async def test_send_without_session_is_rejected(db_session, session_service):
    """Nothing reaches the provider for a number without an active session."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    messaging = MessagingService(live_provider(handler), session_service)

    with pytest.raises(NoActiveSessionError) as exc_info:
        await messaging.send(db_session, PHONE, "hello")

    assert exc_info.value.status_code == 403
    assert calls == []
    assert await count_outbound(db_session) == 0


@pytest.mark.asyncio
async def test_send_after_session_lapsed_is_rejected(db_session, session_service, clock):
    messaging = MessagingService(WhatsAppProvider("stub"), session_service)
    await session_service.activate(db_session, PHONE)
    clock.advance(hours=12, seconds=1)

    with pytest.raises(NoActiveSessionError):
        await messaging.send(db_session, PHONE, "late")


@pytest.mark.asyncio
async def test_send_with_session_delivers_and_logs(db_session, session_service):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["client_token"] = request.headers.get("Client-Token")
        seen["body"] = request.read()
        return httpx.Response(200, json={"zaapId": "z1", "messageId": "m1"})

    messaging = MessagingService(live_provider(handler), session_service)
    await session_service.activate(db_session, PHONE)

    response = await messaging.send(db_session, PHONE, "hi there")

    assert response == {"zaapId": "z1", "messageId": "m1"}
    assert seen["url"] == "https://zapi.test/instances/inst/token/tok/send-text"
    assert seen["client_token"] == "client"
    assert json.loads(seen["body"]) == {"phone": PHONE, "message": "hi there"}

    log = (await db_session.execute(select(OutboundMessageLog))).scalar_one()
    assert log.status == "sent"
    assert log.phone_number == PHONE


@pytest.mark.asyncio
async def test_provider_failure_is_logged_and_raised(db_session, session_service):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="boom")

    messaging = MessagingService(live_provider(handler), session_service)
    await session_service.activate(db_session, PHONE)

    with pytest.raises(UpstreamUnavailableError):
        await messaging.send(db_session, PHONE, "hi")

    assert len(calls) == 1
    log = (await db_session.execute(select(OutboundMessageLog))).scalar_one()
    assert log.status == "failed"
    assert "500" in log.response["error"]


@pytest.mark.asyncio
async def test_stub_provider_send_is_logged(db_session, session_service):
    messaging = MessagingService(WhatsAppProvider("stub"), session_service)
    await session_service.activate(db_session, PHONE)

    response = await messaging.send(db_session, PHONE, "hi")

    assert response["phone"] == PHONE
    assert await count_outbound(db_session) == 1
