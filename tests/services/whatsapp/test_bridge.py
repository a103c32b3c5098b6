# tests/services/whatsapp/test_bridge.py
import asyncio
import base64
import json

import pytest
import websockets

from distribuidora.services.whatsapp import (
    Closed,
    CredentialsRotated,
    DisconnectReason,
    Opened,
    PairingCodeAvailable,
    TransportError,
)
from distribuidora.services.whatsapp.bridge import BridgeTransport, normalize_bridge_event


# --- normalize_bridge_event ---

def test_qr_update_becomes_pairing_code():
    assert normalize_bridge_event({"type": "connection.update", "qr": "2@abc"}) == [PairingCodeAvailable("2@abc")]


def test_open_update():
    assert normalize_bridge_event({"type": "connection.update", "connection": "open"}) == [Opened()]


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "connection.update", "connection": "close", "statusCode": 401},
        {"type": "connection.update", "connection": "close", "statusCode": "401"},
        {
            "type": "connection.update",
            "connection": "close",
            "lastDisconnect": {"error": {"output": {"statusCode": 401}}},
        },
    ],
)
def test_close_with_401_is_logged_out(payload):
    [event] = normalize_bridge_event(payload)
    assert event.reason is DisconnectReason.LOGGED_OUT


@pytest.mark.parametrize("code", [408, 428, 500, 515, None])
def test_other_closes_are_transient(code):
    payload = {"type": "connection.update", "connection": "close"}
    if code is not None:
        payload["statusCode"] = code
    [event] = normalize_bridge_event(payload)
    assert isinstance(event, Closed)
    assert event.reason is DisconnectReason.TRANSIENT


def test_creds_update_is_decoded():
    payload = {"type": "creds.update", "creds": base64.b64encode(b"\x00creds").decode()}
    assert normalize_bridge_event(payload) == [CredentialsRotated(b"\x00creds")]


def test_invalid_creds_update_is_ignored():
    assert normalize_bridge_event({"type": "creds.update", "creds": "***"}) == []


def test_unknown_message_is_ignored():
    assert normalize_bridge_event({"type": "presence.update"}) == []


# --- BridgeTransport ---

class FakeWebSocket:
    def __init__(self, transport, reply):
        self.transport = transport
        self.reply = reply
        self.sent = []

    async def send(self, raw):
        request = json.loads(raw)
        self.sent.append(request)
        if self.reply is not None:
            asyncio.get_running_loop().call_soon(self.transport._resolve, {"id": request["id"], **self.reply})

    async def close(self):
        pass


@pytest.mark.asyncio
async def test_send_resolves_with_bridge_message_id():
    transport = BridgeTransport("ws://bridge", send_timeout=1)
    transport._ws = FakeWebSocket(transport, {"type": "send.result", "messageId": "wamid.1"})

    assert await transport.send("5588996710011", "oi") == "wamid.1"
    assert transport._ws.sent[0]["jid"] == "5588996710011@s.whatsapp.net"
    assert transport._pending == {}


@pytest.mark.asyncio
async def test_send_error_result_raises_transport_error():
    transport = BridgeTransport("ws://bridge", send_timeout=1)
    transport._ws = FakeWebSocket(transport, {"type": "send.result", "error": "not on whatsapp"})

    with pytest.raises(TransportError, match="not on whatsapp"):
        await transport.send("5588996710011", "oi")


@pytest.mark.asyncio
async def test_send_without_connection_raises():
    with pytest.raises(TransportError):
        await BridgeTransport("ws://bridge").send("5588996710011", "oi")


@pytest.mark.asyncio
async def test_open_unreachable_bridge_raises_transport_error():
    transport = BridgeTransport("ws://127.0.0.1:9", open_timeout=1)
    with pytest.raises(TransportError):
        async for _ in transport.open(None):
            pass


@pytest.mark.asyncio
async def test_bridge_session_over_websocket():
    received = []

    async def bridge(ws):
        received.append(json.loads(await ws.recv()))
        await ws.send(json.dumps({"type": "connection.update", "qr": "QR-1"}))
        await ws.send(json.dumps({"type": "connection.update", "connection": "open"}))
        await ws.send(json.dumps({"type": "creds.update", "creds": base64.b64encode(b"fresh").decode()}))
        request = json.loads(await ws.recv())
        received.append(request)
        await ws.send(json.dumps({"type": "send.result", "id": request["id"], "messageId": "wamid-1"}))
        await ws.send(json.dumps({"type": "connection.update", "connection": "close", "statusCode": 401}))

    async with websockets.serve(bridge, "127.0.0.1", 0) as server:
        port = next(iter(server.sockets)).getsockname()[1]
        transport = BridgeTransport(f"ws://127.0.0.1:{port}", open_timeout=2, send_timeout=2)
        events = []
        opened = asyncio.Event()

        async def consume():
            async for event in transport.open(b"stored"):
                events.append(event)
                if isinstance(event, Opened):
                    opened.set()

        consumer = asyncio.create_task(consume())
        await asyncio.wait_for(opened.wait(), 2)
        message_id = await transport.send("5588996710011", "oi")
        await asyncio.wait_for(consumer, 2)
        await transport.close()

    assert message_id == "wamid-1"
    assert received[0] == {"type": "start", "credentials": base64.b64encode(b"stored").decode()}
    assert received[1]["jid"] == "5588996710011@s.whatsapp.net"
    assert received[1]["text"] == "oi"
    assert events == [
        PairingCodeAvailable("QR-1"),
        Opened(),
        CredentialsRotated(b"fresh"),
        Closed(DisconnectReason.LOGGED_OUT, "status 401"),
    ]
