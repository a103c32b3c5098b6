# distribuidora/services/whatsapp/bridge.py
"""
Transport que fala com um bridge WhatsApp Web (Baileys/whatsmeow) via WebSocket.

Protocolo (JSON, uma mensagem por frame):
  -> {"type": "start", "credentials": <base64|null>}
  <- {"type": "connection.update", "qr": "...", "connection": "open|close", "statusCode": 401}
  <- {"type": "creds.update", "creds": <base64>}
  -> {"type": "send", "id": "<req>", "jid": "<digits>@s.whatsapp.net", "text": "..."}
  <- {"type": "send.result", "id": "<req>", "messageId": "...", "error": "..."}
  -> {"type": "logout"}
"""

import asyncio
import base64
import binascii
import json
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

import websockets
from loguru import logger
from websockets.exceptions import ConnectionClosed, WebSocketException

from .errors import TransportError
from .transport import (
    Closed,
    CredentialsRotated,
    DisconnectReason,
    Opened,
    PairingCodeAvailable,
    Transport,
    TransportEvent,
)

LOGGED_OUT_STATUS_CODE = 401
JID_SUFFIX = "@s.whatsapp.net"


def _status_code(payload: Dict[str, Any]) -> Optional[int]:
    code = payload.get("statusCode")
    if code is None:
        # formato do Baileys: lastDisconnect.error.output.statusCode
        error = (payload.get("lastDisconnect") or {}).get("error") or {}
        code = (error.get("output") or {}).get("statusCode")
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def normalize_bridge_event(payload: Dict[str, Any]) -> List[TransportEvent]:
    """Converte uma mensagem do bridge nos eventos de ciclo de vida do Transport."""
    kind = payload.get("type")
    events: List[TransportEvent] = []

    if kind == "connection.update":
        if payload.get("qr"):
            events.append(PairingCodeAvailable(code=str(payload["qr"])))
        connection = payload.get("connection")
        if connection == "open":
            events.append(Opened())
        elif connection == "close":
            code = _status_code(payload)
            reason = DisconnectReason.LOGGED_OUT if code == LOGGED_OUT_STATUS_CODE else DisconnectReason.TRANSIENT
            events.append(Closed(reason=reason, detail=f"status {code}" if code is not None else "closed by bridge"))
    elif kind == "creds.update":
        try:
            events.append(CredentialsRotated(credentials=base64.b64decode(payload.get("creds") or "", validate=True)))
        except (binascii.Error, ValueError):
            logger.warning("Bridge sent creds.update with invalid base64 payload; ignored.")
    else:
        logger.debug(f"Ignoring bridge message of type '{kind}'.")
    return events


class BridgeTransport(Transport):
    def __init__(self, url: str, *, open_timeout: float = 10.0, send_timeout: float = 25.0):
        self.url = url
        self.open_timeout = open_timeout
        self.send_timeout = send_timeout
        self._ws = None
        self._pending: Dict[str, asyncio.Future] = {}

    async def open(self, credentials: Optional[bytes]) -> AsyncIterator[TransportEvent]:
        try:
            self._ws = await websockets.connect(self.url, open_timeout=self.open_timeout)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            raise TransportError(f"WhatsApp bridge unreachable at {self.url}: {e}") from e

        start = {"type": "start", "credentials": base64.b64encode(credentials).decode("ascii") if credentials else None}
        try:
            await self._ws.send(json.dumps(start))
            async for raw in self._ws:
                try:
                    payload = json.loads(raw)
                except (TypeError, ValueError):
                    logger.warning(f"Bridge sent a non-JSON frame: {str(raw)[:80]!r}")
                    continue
                if not isinstance(payload, dict):
                    continue
                if payload.get("type") == "send.result":
                    self._resolve(payload)
                    continue
                for event in normalize_bridge_event(payload):
                    yield event
                    if isinstance(event, Closed):
                        return
        except ConnectionClosed as e:
            yield Closed(reason=DisconnectReason.TRANSIENT, detail=f"bridge connection lost: {e}")
        finally:
            self._fail_pending("Conexão com o WhatsApp encerrada.")

    async def send(self, recipient_id: str, text: str) -> str:
        if self._ws is None:
            raise TransportError("WhatsApp bridge not connected.")
        request_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._ws.send(json.dumps({
                "type": "send",
                "id": request_id,
                "jid": f"{recipient_id}{JID_SUFFIX}",
                "text": text,
            }))
            return await asyncio.wait_for(future, timeout=self.send_timeout)
        except ConnectionClosed as e:
            raise TransportError(f"Bridge connection lost while sending: {e}") from e
        finally:
            self._pending.pop(request_id, None)

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()

    async def logout(self) -> None:
        if self._ws is not None:
            try:
                await self._ws.send(json.dumps({"type": "logout"}))
            except ConnectionClosed:
                logger.debug("Bridge already closed when sending logout.")
        await self.close()

    def _resolve(self, payload: Dict[str, Any]) -> None:
        future = self._pending.get(str(payload.get("id")))
        if future is None or future.done():
            logger.debug(f"Unmatched send.result from bridge: {payload.get('id')}")
            return
        if payload.get("error"):
            future.set_exception(TransportError(str(payload["error"])))
        else:
            future.set_result(payload.get("messageId") or "sent")

    def _fail_pending(self, reason: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(TransportError(reason))
        self._pending.clear()
