# tests/services/whatsapp/test_session_manager.py
import asyncio

import pytest

from distribuidora.services.whatsapp import (
    Closed,
    ConcurrentConnectRejected,
    ConnectionState,
    CredentialsRotated,
    DisconnectReason,
    InvalidRecipient,
    NotConnected,
    Opened,
    PairingCodeAvailable,
    PersistenceError,
    ReconnectPolicy,
    SessionManager,
    TransportError,
)
from distribuidora.services.whatsapp.session import NOT_CONNECTED_MESSAGE
from tests.fakes import FakeTransportFactory, MemoryCredentialStore, SlowFileCredentialStore, wait_until

pytestmark = pytest.mark.asyncio


async def _connect_and_wait(manager, factory, index=0):
    await manager.connect()
    await wait_until(lambda: len(factory.created) > index and factory.created[index].opened.is_set())
    return factory.created[index]


async def _open_session(manager, factory):
    transport = await _connect_and_wait(manager, factory)
    transport.emit(Opened())
    await wait_until(lambda: manager.state is ConnectionState.OPEN)
    return transport


# --- Máquina de estados ---

@pytest.mark.parametrize(
    "events, expected",
    [
        ([], ConnectionState.CONNECTING),
        ([PairingCodeAvailable("QR-1")], ConnectionState.AWAITING_PAIRING),
        ([PairingCodeAvailable("QR-1"), PairingCodeAvailable("QR-2")], ConnectionState.AWAITING_PAIRING),
        ([PairingCodeAvailable("QR-1"), Opened()], ConnectionState.OPEN),
        ([Opened(), CredentialsRotated(b"v2")], ConnectionState.OPEN),
        ([Opened(), PairingCodeAvailable("late")], ConnectionState.OPEN),
        ([PairingCodeAvailable("QR-1"), Closed(DisconnectReason.LOGGED_OUT)], ConnectionState.DISCONNECTED),
        ([Opened(), Closed(DisconnectReason.LOGGED_OUT)], ConnectionState.DISCONNECTED),
    ],
)
async def test_state_transitions(session_manager, transport_factory, events, expected):
    transport = await _connect_and_wait(session_manager, transport_factory)
    transport.emit(*events)
    await wait_until(lambda: transport.events.empty() and session_manager.state is expected)
    await asyncio.sleep(0.02)
    assert session_manager.state is expected
    assert len(transport_factory.created) == 1


async def test_initial_status_is_disconnected(session_manager):
    status = session_manager.status()
    assert status.state is ConnectionState.DISCONNECTED
    assert status.as_dict() == {"connected": False, "qrCode": None}


async def test_pairing_code_is_exposed_until_opened(session_manager, transport_factory):
    transport = await _connect_and_wait(session_manager, transport_factory)
    assert transport.opened_with is None

    transport.emit(PairingCodeAvailable("ABC123"))
    await wait_until(lambda: session_manager.state is ConnectionState.AWAITING_PAIRING)
    assert session_manager.status().as_dict() == {"connected": False, "qrCode": "ABC123"}

    transport.emit(Opened())
    await wait_until(lambda: session_manager.state is ConnectionState.OPEN)
    assert session_manager.status().as_dict() == {"connected": True, "qrCode": None}


async def test_stored_credentials_are_used_on_open(transport_factory):
    store = MemoryCredentialStore(blob=b"saved-creds")
    manager = SessionManager(transport_factory, store, reconnect_policy=ReconnectPolicy(base_delay=0))
    try:
        transport = await _connect_and_wait(manager, transport_factory)
        assert transport.opened_with == b"saved-creds"
    finally:
        await manager.shutdown()


# --- connect ---

async def test_connect_is_noop_when_not_disconnected(session_manager, transport_factory):
    assert await session_manager.connect() is True
    assert await session_manager.connect() is False
    await wait_until(lambda: transport_factory.created and transport_factory.latest.opened.is_set())
    assert len(transport_factory.created) == 1


async def test_strict_connect_rejects_when_in_progress(session_manager):
    await session_manager.connect()
    with pytest.raises(ConcurrentConnectRejected):
        await session_manager.connect(strict=True)


async def test_concurrent_connects_start_a_single_transport(session_manager, transport_factory):
    results = await asyncio.gather(*[session_manager.connect() for _ in range(10)])
    assert results.count(True) == 1

    await wait_until(lambda: transport_factory.live())
    await asyncio.sleep(0.02)
    assert len(transport_factory.created) == 1
    assert len(transport_factory.live()) == 1


# --- send ---

async def test_send_when_disconnected_does_not_touch_transport(session_manager):
    result = await session_manager.send("88996710011", "oi")
    assert not result.success
    assert isinstance(result.error, NotConnected)
    assert result.as_dict() == {"success": False, "error": NOT_CONNECTED_MESSAGE}


async def test_send_while_connecting_fails_with_not_connected(session_manager, transport_factory):
    transport = await _connect_and_wait(session_manager, transport_factory)
    transport.emit(PairingCodeAvailable("QR"))
    await wait_until(lambda: session_manager.state is ConnectionState.AWAITING_PAIRING)

    result = await session_manager.send("88996710011", "oi")
    assert isinstance(result.error, NotConnected)
    assert transport.sent == []


async def test_send_normalizes_recipient_and_returns_message_id(session_manager, transport_factory):
    transport = await _open_session(session_manager, transport_factory)

    result = await session_manager.send("88 99671-0011", "Seu pedido saiu para entrega")

    assert result.success
    assert result.message_id == "m1"
    assert result.as_dict() == {"success": True, "messageId": "m1"}
    assert transport.sent == [("5588996710011", "Seu pedido saiu para entrega")]


async def test_send_without_message_id_reports_sent(session_manager, transport_factory):
    transport = await _open_session(session_manager, transport_factory)
    transport.send_result = None

    result = await session_manager.send("5588996710011", "oi")
    assert result.message_id == "sent"


async def test_send_invalid_recipient(session_manager, transport_factory):
    transport = await _open_session(session_manager, transport_factory)

    result = await session_manager.send("(--)", "oi")

    assert isinstance(result.error, InvalidRecipient)
    assert transport.sent == []


async def test_send_wraps_transport_failure(session_manager, transport_factory):
    transport = await _open_session(session_manager, transport_factory)
    transport.send_error = RuntimeError("socket reset")

    result = await session_manager.send("88996710011", "oi")

    assert isinstance(result.error, TransportError)
    assert "socket reset" in str(result.error)
    assert session_manager.state is ConnectionState.OPEN


async def test_send_timeout_becomes_transport_error(transport_factory, credential_store):
    manager = SessionManager(
        transport_factory, credential_store, reconnect_policy=ReconnectPolicy(base_delay=0), send_timeout=0.05
    )
    try:
        transport = await _open_session(manager, transport_factory)
        transport.send_delay = 1.0

        result = await manager.send("88996710011", "oi")

        assert isinstance(result.error, TransportError)
    finally:
        await manager.shutdown()


# --- reconexão ---

async def test_transient_close_reconnects_automatically(session_manager, transport_factory, credential_store):
    first = await _open_session(session_manager, transport_factory)
    first.emit(Closed(DisconnectReason.TRANSIENT, "connection lost"))

    second = await _connect_and_wait_for_index(transport_factory, 1)
    await wait_until(lambda: first.closed)
    assert session_manager.state is ConnectionState.CONNECTING

    second.emit(Opened())
    await wait_until(lambda: session_manager.state is ConnectionState.OPEN)
    assert len(transport_factory.live()) == 1


async def _connect_and_wait_for_index(factory, index):
    await wait_until(lambda: len(factory.created) > index and factory.created[index].opened.is_set())
    return factory.created[index]


async def test_reconnect_uses_latest_persisted_credentials(session_manager, transport_factory, credential_store):
    first = await _open_session(session_manager, transport_factory)
    first.emit(CredentialsRotated(b"v2"), Closed(DisconnectReason.TRANSIENT))

    second = await _connect_and_wait_for_index(transport_factory, 1)
    assert credential_store.saves == [b"v2"]
    assert second.opened_with == b"v2"


async def test_transport_failure_is_treated_as_transient(session_manager, transport_factory):
    first = await _connect_and_wait(session_manager, transport_factory)
    first.emit(ConnectionError("bridge refused"))

    second = await _connect_and_wait_for_index(transport_factory, 1)
    second.emit(Opened())
    await wait_until(lambda: session_manager.state is ConnectionState.OPEN)


async def test_stream_end_without_close_reconnects(session_manager, transport_factory):
    first = await _open_session(session_manager, transport_factory)
    first.emit(None)

    await _connect_and_wait_for_index(transport_factory, 1)
    assert session_manager.state is ConnectionState.CONNECTING


async def test_logged_out_close_does_not_reconnect(session_manager, transport_factory, credential_store):
    credential_store.blob = b"creds"
    first = await _open_session(session_manager, transport_factory)
    first.emit(Closed(DisconnectReason.LOGGED_OUT, "status 401"))

    await wait_until(lambda: session_manager.state is ConnectionState.DISCONNECTED)
    await asyncio.sleep(0.05)
    assert len(transport_factory.created) == 1
    assert first.closed
    assert credential_store.blob == b"creds"

    # Um connect explícito volta a tentar
    assert await session_manager.connect() is True
    await _connect_and_wait_for_index(transport_factory, 1)


async def test_reconnect_gives_up_after_max_attempts(credential_store):
    factory = FakeTransportFactory(fail_with=ConnectionError("bridge down"))
    manager = SessionManager(
        factory, credential_store, reconnect_policy=ReconnectPolicy(base_delay=0, max_attempts=2)
    )
    try:
        await manager.connect()
        await wait_until(lambda: len(factory.created) == 3 and manager.state is ConnectionState.DISCONNECTED)
        await asyncio.sleep(0.05)
        assert len(factory.created) == 3
        assert manager.state is ConnectionState.DISCONNECTED
    finally:
        await manager.shutdown()


# --- persistência de credenciais ---

async def test_credentials_rotated_while_open_are_saved(session_manager, transport_factory, credential_store):
    transport = await _open_session(session_manager, transport_factory)
    transport.emit(CredentialsRotated(b"v2"), CredentialsRotated(b"v3"))

    await wait_until(lambda: credential_store.saves == [b"v2", b"v3"])
    assert session_manager.state is ConnectionState.OPEN


async def test_credential_save_is_retried(session_manager, transport_factory, credential_store):
    credential_store.save_failures = 2
    transport = await _open_session(session_manager, transport_factory)
    transport.emit(CredentialsRotated(b"v2"))

    await wait_until(lambda: credential_store.blob == b"v2")
    assert credential_store.save_failures == 0


async def test_credential_save_failure_does_not_drop_session(session_manager, transport_factory, credential_store):
    credential_store.blob = b"v1"
    credential_store.save_failures = 10
    transport = await _open_session(session_manager, transport_factory)
    transport.emit(CredentialsRotated(b"v2"))

    await wait_until(lambda: credential_store.save_failures == 7)
    await asyncio.sleep(0.02)
    assert credential_store.blob == b"v1"
    assert session_manager.state is ConnectionState.OPEN
    assert (await session_manager.send("88996710011", "oi")).success


# --- logout / shutdown ---

@pytest.mark.parametrize("prior", ["disconnected", "connecting", "awaiting_pairing", "open"])
async def test_logout_resets_session_from_any_state(session_manager, transport_factory, credential_store, prior):
    credential_store.blob = b"creds"
    if prior != "disconnected":
        transport = await _connect_and_wait(session_manager, transport_factory)
        if prior == "awaiting_pairing":
            transport.emit(PairingCodeAvailable("QR"))
            await wait_until(lambda: session_manager.state is ConnectionState.AWAITING_PAIRING)
        elif prior == "open":
            transport.emit(Opened())
            await wait_until(lambda: session_manager.state is ConnectionState.OPEN)

    await session_manager.logout()

    assert session_manager.status().as_dict() == {"connected": False, "qrCode": None}
    assert await credential_store.load() is None
    assert transport_factory.live() == []
    if prior != "disconnected":
        assert transport_factory.latest.logged_out


@pytest.mark.parametrize("prior", ["connecting", "awaiting_pairing", "open"])
async def test_logout_waits_for_in_flight_credential_save(transport_factory, tmp_path, prior):
    store = SlowFileCredentialStore(tmp_path / "auth", write_delay=0.2)
    manager = SessionManager(transport_factory, store, reconnect_policy=ReconnectPolicy(base_delay=0))
    try:
        transport = await _connect_and_wait(manager, transport_factory)
        if prior == "awaiting_pairing":
            transport.emit(PairingCodeAvailable("QR"))
            await wait_until(lambda: manager.state is ConnectionState.AWAITING_PAIRING)
        elif prior == "open":
            transport.emit(Opened())
            await wait_until(lambda: manager.state is ConnectionState.OPEN)
        transport.emit(CredentialsRotated(b"rotated"))
        await wait_until(store.writing.is_set)

        await manager.logout()

        assert manager.status().as_dict() == {"connected": False, "qrCode": None}
        assert await store.load() is None
        # nenhuma escrita atrasada recria o arquivo
        await asyncio.sleep(0.3)
        assert await store.load() is None
        assert not (tmp_path / "auth").exists()
    finally:
        await manager.shutdown()


async def test_shutdown_lets_in_flight_credential_save_finish(transport_factory, tmp_path):
    store = SlowFileCredentialStore(tmp_path / "auth", write_delay=0.1)
    manager = SessionManager(transport_factory, store, reconnect_policy=ReconnectPolicy(base_delay=0))
    transport = await _open_session(manager, transport_factory)
    transport.emit(CredentialsRotated(b"rotated"))
    await wait_until(store.writing.is_set)

    await manager.shutdown()

    assert await store.load() == b"rotated"


async def test_logout_drops_events_from_cancelled_attempt(session_manager, transport_factory):
    stale = await _connect_and_wait(session_manager, transport_factory)
    await session_manager.logout()

    stale.emit(Opened())
    await asyncio.sleep(0.02)
    assert session_manager.state is ConnectionState.DISCONNECTED

    await session_manager.connect()
    fresh = await _connect_and_wait_for_index(transport_factory, 1)
    assert fresh.opened_with is None


async def test_logout_propagates_clear_failure_after_reset(session_manager, transport_factory, credential_store):
    await _open_session(session_manager, transport_factory)
    credential_store.clear_fails = True

    with pytest.raises(PersistenceError):
        await session_manager.logout()
    assert session_manager.state is ConnectionState.DISCONNECTED


async def test_shutdown_closes_transport_and_keeps_credentials(session_manager, transport_factory, credential_store):
    credential_store.blob = b"creds"
    transport = await _open_session(session_manager, transport_factory)

    await session_manager.shutdown()

    assert transport.closed
    assert not transport.logged_out
    assert credential_store.blob == b"creds"
    assert session_manager.state is ConnectionState.DISCONNECTED


# --- política de backoff ---

async def test_reconnect_policy_backoff():
    policy = ReconnectPolicy(base_delay=1.0, max_delay=30.0)
    assert policy.delay_for(0) == 0.0
    assert 1.0 <= policy.delay_for(1) <= 1.1
    assert 4.0 <= policy.delay_for(3) <= 4.4
    assert 30.0 <= policy.delay_for(20) <= 33.0
    assert not policy.exhausted(1000)


async def test_reconnect_policy_max_attempts():
    policy = ReconnectPolicy(max_attempts=3)
    assert not policy.exhausted(3)
    assert policy.exhausted(4)
