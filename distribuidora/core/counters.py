# distribuidora/core/counters.py

from datetime import datetime

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo import ReturnDocument
from loguru import logger

from distribuidora.core.database import get_database

COUNTERS_COLLECTION = "counters"


class CounterService:
    """Gera IDs sequenciais amigáveis (ex: VND-2026-00001)."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection: AsyncIOMotorCollection = db[COUNTERS_COLLECTION]

    async def _get_next_sequence(self, name: str) -> int:
        """Obtém o próximo valor da sequência de forma atômica."""
        log = logger.bind(counter_name=name)
        try:
            # find_one_and_update com upsert=True é atômico
            counter = await self.collection.find_one_and_update(
                {"_id": name},
                {"$inc": {"sequence_value": 1}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            log.exception(f"Database error while getting next sequence for counter '{name}': {e}")
            raise RuntimeError(f"Database error accessing counter '{name}'") from e

        if counter is None or "sequence_value" not in counter:
            log.critical(f"CRITICAL: find_one_and_update returned unexpected value: {counter}")
            raise RuntimeError(f"Failed to reliably get or create counter '{name}'")
        return counter["sequence_value"]

    async def generate_reference(self, prefix: str) -> str:
        """Gera a referência completa (ex: VND-2026-00001)."""
        if not prefix or not prefix.isalnum():
            raise ValueError("Prefix must be a non-empty alphanumeric string.")

        year = datetime.utcnow().year
        counter_name = f"{prefix.lower()}_{year}_counter"
        sequence = await self._get_next_sequence(counter_name)
        ref_id = f"{prefix.upper()}-{year}-{sequence:05d}"
        logger.bind(prefix=prefix).debug(f"Reference ID generated: {ref_id}")
        return ref_id


async def get_counter_service(db: AsyncIOMotorDatabase = Depends(get_database)) -> CounterService:
    """FastAPI dependency to get CounterService instance."""
    return CounterService(db)
