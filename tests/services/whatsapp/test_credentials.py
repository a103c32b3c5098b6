# tests/services/whatsapp/test_credentials.py
import pytest

from distribuidora.services.whatsapp import FileCredentialStore, MongoCredentialStore, PersistenceError

pytestmark = pytest.mark.asyncio


# --- FileCredentialStore ---

async def test_file_store_load_without_file_returns_none(tmp_path):
    store = FileCredentialStore(tmp_path / "auth")
    assert await store.load() is None


async def test_file_store_save_replaces_whole_blob(tmp_path):
    store = FileCredentialStore(tmp_path / "auth")

    await store.save(b"first-version-with-a-longer-payload")
    await store.save(b"v2")

    assert await store.load() == b"v2"
    # Nenhum temporário sobra no diretório
    assert [p.name for p in (tmp_path / "auth").iterdir()] == ["creds.bin"]


async def test_file_store_clear_removes_only_credentials(tmp_path):
    auth_dir = tmp_path / "auth"
    auth_dir.mkdir()
    (auth_dir / "unrelated.db").write_bytes(b"keep me")
    (auth_dir / ".creds-leftover").write_bytes(b"half-written")
    store = FileCredentialStore(auth_dir)
    await store.save(b"secret")

    await store.clear()

    assert await store.load() is None
    assert [p.name for p in auth_dir.iterdir()] == ["unrelated.db"]
    await store.clear()  # idempotente


async def test_file_store_clear_removes_empty_directory(tmp_path):
    store = FileCredentialStore(tmp_path / "auth")
    await store.save(b"secret")

    await store.clear()

    assert not (tmp_path / "auth").exists()


async def test_file_store_rejects_non_bytes(tmp_path):
    store = FileCredentialStore(tmp_path / "auth")
    with pytest.raises(TypeError):
        await store.save("not-bytes")


async def test_file_store_io_errors_become_persistence_error(tmp_path):
    blocker = tmp_path / "auth"
    blocker.write_text("a file where the directory should be")
    store = FileCredentialStore(blocker)

    with pytest.raises(PersistenceError):
        await store.save(b"secret")
    with pytest.raises(PersistenceError):
        await store.load()


# --- MongoCredentialStore ---

async def test_mongo_store_roundtrip(db_client):
    store = MongoCredentialStore(db_client)
    assert await store.load() is None

    await store.save(b"\x00\x01binary-creds")
    await store.save(b"\x00\x02rotated")

    assert await store.load() == b"\x00\x02rotated"
    assert await db_client["whatsapp_session"].count_documents({}) == 1


async def test_mongo_store_clear(db_client):
    store = MongoCredentialStore(db_client)
    await store.save(b"secret")

    await store.clear()

    assert await store.load() is None
    assert await db_client["whatsapp_session"].count_documents({}) == 0
