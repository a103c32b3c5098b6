# distribuidora/services/whatsapp/credentials.py

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from bson.binary import Binary
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from .errors import PersistenceError


class CredentialStore(ABC):
    """Persistência do blob opaco de credenciais da sessão."""

    @abstractmethod
    async def load(self) -> Optional[bytes]:
        ...

    @abstractmethod
    async def save(self, blob: bytes) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


def _ensure_bytes(blob) -> bytes:
    if not isinstance(blob, (bytes, bytearray)):
        raise TypeError(f"Credential blob must be bytes, got {type(blob).__name__}")
    return bytes(blob)


class FileCredentialStore(CredentialStore):
    """Guarda o blob em `<directory>/creds.bin`. A escrita é atômica (tmp + replace)."""

    FILENAME = "creds.bin"

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.path = self.directory / self.FILENAME

    async def load(self) -> Optional[bytes]:
        return await asyncio.to_thread(self._read)

    async def save(self, blob: bytes) -> None:
        await asyncio.to_thread(self._write, _ensure_bytes(blob))

    async def clear(self) -> None:
        await asyncio.to_thread(self._remove)
        logger.info(f"WhatsApp credentials removed from '{self.directory}'.")

    def _read(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Could not read credentials at '{self.path}': {e}") from e

    def _write(self, blob: bytes) -> None:
        tmp_path = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=".creds-")
            with os.fdopen(fd, "wb") as fh:
                fh.write(blob)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise PersistenceError(f"Could not write credentials at '{self.path}': {e}") from e
        finally:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)

    def _remove(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
            for leftover in self.directory.glob(".creds-*"):
                leftover.unlink(missing_ok=True)
            if self.directory.is_dir() and not any(self.directory.iterdir()):
                self.directory.rmdir()
        except OSError as e:
            raise PersistenceError(f"Could not remove credentials at '{self.path}': {e}") from e


class MongoCredentialStore(CredentialStore):
    """Guarda o blob num documento único da coleção `whatsapp_session`."""

    collection_name = "whatsapp_session"
    document_id = "default"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[self.collection_name]

    async def load(self) -> Optional[bytes]:
        try:
            document = await self.collection.find_one({"_id": self.document_id})
        except PyMongoError as e:
            raise PersistenceError(f"Could not load credentials: {e}") from e
        if not document or document.get("credentials") is None:
            return None
        return bytes(document["credentials"])

    async def save(self, blob: bytes) -> None:
        data = _ensure_bytes(blob)
        try:
            await self.collection.replace_one(
                {"_id": self.document_id},
                {"_id": self.document_id, "credentials": Binary(data), "updated_at": datetime.utcnow()},
                upsert=True,
            )
        except PyMongoError as e:
            raise PersistenceError(f"Could not save credentials: {e}") from e

    async def clear(self) -> None:
        try:
            await self.collection.delete_one({"_id": self.document_id})
        except PyMongoError as e:
            raise PersistenceError(f"Could not clear credentials: {e}") from e
        logger.info("WhatsApp credentials removed from MongoDB.")
