# distribuidora/services/whatsapp/session.py

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger

from .credentials import CredentialStore
from .errors import (
    ConcurrentConnectRejected,
    InvalidRecipient,
    NotConnected,
    PersistenceError,
    TransportError,
    WhatsAppSessionError,
)
from .phone import normalize_recipient
from .transport import (
    Closed,
    CredentialsRotated,
    DisconnectReason,
    Opened,
    PairingCodeAvailable,
    Transport,
    TransportEvent,
    TransportFactory,
)

NOT_CONNECTED_MESSAGE = "WhatsApp não conectado. Escaneie o QR Code em Configurações."


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AWAITING_PAIRING = "awaiting_pairing"
    OPEN = "open"


@dataclass(frozen=True)
class SessionStatus:
    state: ConnectionState
    pairing_code: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.OPEN

    def as_dict(self) -> Dict[str, Any]:
        return {"connected": self.connected, "qrCode": self.pairing_code}


@dataclass(frozen=True)
class SendResult:
    message_id: Optional[str] = None
    error: Optional[WhatsAppSessionError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.message_id is not None:
            data["messageId"] = self.message_id
        if self.error is not None:
            data["error"] = str(self.error)
        return data


@dataclass(frozen=True)
class ReconnectPolicy:
    """Backoff exponencial com jitter. A tentativa 0 é imediata."""

    base_delay: float = 1.0
    max_delay: float = 30.0
    max_attempts: Optional[int] = None  # None = tenta para sempre

    def delay_for(self, attempt: int) -> float:
        if attempt <= 0 or self.base_delay <= 0:
            return 0.0
        cap = max(self.max_delay, self.base_delay)
        delay = min(self.base_delay * (2 ** (attempt - 1)), cap)
        return delay + random.uniform(0, delay * 0.1)

    def exhausted(self, failures: int) -> bool:
        return self.max_attempts is not None and failures > self.max_attempts


class SessionManager:
    """Dono único da sessão WhatsApp do processo.

    Todas as transições de estado acontecem sob `_lock`. Cada tentativa de
    conexão recebe uma geração; eventos de gerações antigas são descartados,
    o que garante no máximo um Transport vivo por vez.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        credential_store: CredentialStore,
        *,
        country_prefix: str = "55",
        reconnect_policy: Optional[ReconnectPolicy] = None,
        send_timeout: float = 25.0,
        credential_save_attempts: int = 3,
        credential_retry_delay: float = 0.5,
    ):
        self._transport_factory = transport_factory
        self._store = credential_store
        self._country_prefix = country_prefix
        self._policy = reconnect_policy or ReconnectPolicy()
        self._send_timeout = send_timeout
        self._save_attempts = max(1, credential_save_attempts)
        self._save_retry_delay = credential_retry_delay

        self._lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()
        self._pending_save: Optional[asyncio.Future] = None
        self._status = SessionStatus(ConnectionState.DISCONNECTED)
        self._transport: Optional[Transport] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._failures = 0

    @property
    def state(self) -> ConnectionState:
        return self._status.state

    def status(self) -> SessionStatus:
        """Snapshot imutável; nunca bloqueia."""
        return self._status

    # --- transições (chamar apenas com _lock adquirido) ---

    def _set_status(self, state: ConnectionState, pairing_code: Optional[str] = None) -> None:
        previous = self._status.state
        self._status = SessionStatus(state, pairing_code if state is ConnectionState.AWAITING_PAIRING else None)
        if previous is not state:
            logger.info(f"WhatsApp session: {previous.value} -> {state.value}")

    def _start_attempt(self, delay: float) -> None:
        self._generation += 1
        self._set_status(ConnectionState.CONNECTING)
        self._task = asyncio.create_task(
            self._run(self._generation, delay), name=f"whatsapp-session-{self._generation}"
        )

    # --- operações públicas ---

    async def connect(self, strict: bool = False) -> bool:
        """Inicia a conexão se estiver Disconnected. Retorna True se iniciou."""
        async with self._lock:
            if self._status.state is not ConnectionState.DISCONNECTED:
                if strict:
                    raise ConcurrentConnectRejected(
                        f"Connection already in progress (state '{self._status.state.value}')."
                    )
                logger.debug(f"connect() ignored: session is {self._status.state.value}.")
                return False
            self._failures = 0
            self._start_attempt(delay=0.0)
            return True

    async def send(self, recipient: str, text: str) -> SendResult:
        """Envia uma mensagem de texto. Nunca levanta: a falha vem no SendResult."""
        status, transport = self._status, self._transport
        if status.state is not ConnectionState.OPEN or transport is None:
            return SendResult(error=NotConnected(NOT_CONNECTED_MESSAGE))

        try:
            recipient_id = normalize_recipient(recipient, self._country_prefix)
        except InvalidRecipient as e:
            return SendResult(error=e)

        try:
            message_id = await asyncio.wait_for(transport.send(recipient_id, text), timeout=self._send_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"WhatsApp send to {recipient_id} timed out after {self._send_timeout}s.")
            return SendResult(error=TransportError("Tempo esgotado ao enviar a mensagem."))
        except WhatsAppSessionError as e:
            logger.warning(f"WhatsApp send to {recipient_id} failed: {e}")
            return SendResult(error=e)
        except Exception as e:
            logger.exception(f"Unexpected error sending WhatsApp message to {recipient_id}")
            return SendResult(error=TransportError(str(e) or type(e).__name__))

        logger.info(f"WhatsApp message sent to {recipient_id} (id={message_id}).")
        return SendResult(message_id=message_id or "sent")

    async def logout(self) -> None:
        """Encerra a sessão no servidor e apaga as credenciais.

        O estado volta para Disconnected mesmo que a limpeza falhe; nesse caso
        PersistenceError é propagado.
        """
        logger.info("Logging out WhatsApp session...")
        async with self._lock:
            transport = await self._stop_locked()
            if transport is not None:
                try:
                    await asyncio.wait_for(transport.logout(), timeout=self._send_timeout)
                except Exception as e:
                    logger.warning(f"Transport logout failed (ignored): {e}")
            async with self._save_lock:
                await self._settle_pending_save()
                await self._store.clear()
        logger.success("WhatsApp session logged out.")

    async def shutdown(self) -> None:
        """Fecha a conexão no desligamento do processo, mantendo as credenciais."""
        async with self._lock:
            transport = await self._stop_locked()
            if transport is not None:
                await self._discard(transport)
            await self._settle_pending_save()
        logger.info("WhatsApp session shut down.")

    async def _stop_locked(self) -> Optional[Transport]:
        self._generation += 1
        task, self._task = self._task, None
        transport, self._transport = self._transport, None
        self._failures = 0
        self._set_status(ConnectionState.DISCONNECTED)
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        return transport

    # --- loop da conexão ---

    async def _run(self, generation: int, delay: float) -> None:
        log = logger.bind(generation=generation)
        if delay > 0:
            log.info(f"Reconnecting WhatsApp in {delay:.1f}s...")
            await asyncio.sleep(delay)

        reason, detail = DisconnectReason.TRANSIENT, None
        transport: Optional[Transport] = None
        try:
            credentials = await self._store.load()
            transport = self._transport_factory()
            async with self._lock:
                if generation != self._generation:
                    stale = True
                else:
                    stale = False
                    self._transport = transport
            if stale:
                await self._discard(transport)
                return

            log.info(f"Opening WhatsApp transport (stored credentials: {'yes' if credentials else 'no'}).")
            events = transport.open(credentials)
            try:
                async for event in events:
                    if isinstance(event, CredentialsRotated):
                        await self._persist_credentials(event.credentials, generation)
                        continue
                    if isinstance(event, Closed):
                        reason, detail = event.reason, event.detail
                        break
                    if not await self._apply(event, generation):
                        return
                else:
                    detail = "event stream ended without a close event"
            finally:
                aclose = getattr(events, "aclose", None)
                if aclose is not None:
                    await aclose()
        except asyncio.CancelledError:
            raise
        except PersistenceError as e:
            detail = f"credential load failed: {e}"
            log.error(f"WhatsApp credentials could not be loaded: {e}")
        except Exception as e:
            detail = str(e) or type(e).__name__
            log.opt(exception=e).error(f"WhatsApp transport failed: {detail}")

        await self._handle_close(generation, reason, detail)

    async def _apply(self, event: TransportEvent, generation: int) -> bool:
        async with self._lock:
            if generation != self._generation:
                logger.debug(f"Dropping stale event {event!r} (generation {generation}).")
                return False
            if isinstance(event, PairingCodeAvailable):
                if self._status.state is ConnectionState.OPEN:
                    logger.warning("Pairing code received while session is open; ignored.")
                else:
                    self._set_status(ConnectionState.AWAITING_PAIRING, event.code)
                    logger.info("WhatsApp QR code available. Scan it to pair the device.")
            elif isinstance(event, Opened):
                self._failures = 0
                self._set_status(ConnectionState.OPEN)
                logger.success("WhatsApp connected.")
            return True

    async def _handle_close(self, generation: int, reason: DisconnectReason, detail: Optional[str]) -> None:
        async with self._lock:
            if generation != self._generation:
                return
            transport, self._transport = self._transport, None
            self._task = None
            self._set_status(ConnectionState.DISCONNECTED)

            if reason is DisconnectReason.LOGGED_OUT:
                logger.warning(f"WhatsApp session logged out by the server ({detail}). Pairing required; not reconnecting.")
            else:
                attempt = self._failures
                self._failures += 1
                if self._policy.exhausted(self._failures):
                    logger.error(
                        f"WhatsApp connection closed ({detail}). Giving up after {self._policy.max_attempts} reconnect attempts."
                    )
                else:
                    logger.warning(f"WhatsApp connection closed ({detail}). Reconnecting (attempt {attempt + 1}).")
                    self._start_attempt(self._policy.delay_for(attempt))

        if transport is not None:
            await self._discard(transport)

    async def _persist_credentials(self, blob: bytes, generation: int) -> None:
        for attempt in range(1, self._save_attempts + 1):
            try:
                async with self._save_lock:
                    if generation != self._generation:
                        return
                    # A escrita roda até o fim mesmo se _run for cancelado; logout() espera por ela
                    self._pending_save = asyncio.ensure_future(self._store.save(blob))
                    await asyncio.shield(self._pending_save)
                logger.debug("WhatsApp credentials persisted.")
                return
            except PersistenceError as e:
                logger.warning(f"Failed to persist WhatsApp credentials (attempt {attempt}/{self._save_attempts}): {e}")
                if attempt < self._save_attempts:
                    await asyncio.sleep(self._save_retry_delay)
        logger.error("WhatsApp credentials NOT persisted. Session stays up but may need pairing after restart.")

    async def _settle_pending_save(self) -> None:
        pending, self._pending_save = self._pending_save, None
        if pending is not None:
            [result] = await asyncio.gather(pending, return_exceptions=True)
            if isinstance(result, Exception):
                logger.warning(f"In-flight credential save failed: {result}")

    async def _discard(self, transport: Transport) -> None:
        try:
            await asyncio.wait_for(transport.close(), timeout=self._send_timeout)
        except Exception as e:
            logger.debug(f"Ignoring error while closing transport: {e}")
