# distribuidora/modules/whatsapp/repository.py
from typing import Optional

from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from distribuidora.core.database import get_database
from distribuidora.core.repository import BaseRepository
from .models import WhatsAppConfigInDB, WhatsAppConfigUpsert


class WhatsAppConfigRepository(BaseRepository[WhatsAppConfigInDB, WhatsAppConfigUpsert, WhatsAppConfigUpsert]):
    model = WhatsAppConfigInDB
    collection_name = "whatsapp_config"

    async def get_current(self) -> Optional[WhatsAppConfigInDB]:
        """A configuração é uma linha única; devolve a primeira encontrada."""
        rows = await self.list_by(sort=[("created_at", 1)], limit=1)
        return rows[0] if rows else None

    async def upsert(self, data: WhatsAppConfigUpsert) -> WhatsAppConfigInDB:
        existing = await self.get_current()
        if existing is None:
            logger.info("Creating WhatsApp configuration row.")
            return await self.create(data)
        logger.info("Updating WhatsApp configuration row.")
        updated = await self.update(existing.id, data.model_dump())
        if updated is None:
            raise RuntimeError("WhatsApp configuration vanished during update.")
        return updated


async def get_whatsapp_config_repository(
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> WhatsAppConfigRepository:
    return WhatsAppConfigRepository(db)
