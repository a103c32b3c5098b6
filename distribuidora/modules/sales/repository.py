# distribuidora/modules/sales/repository.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from distribuidora.core.database import get_database
from distribuidora.core.repository import BaseRepository
from .models import SaleCreateInternal, SaleInDB

COLLECTION_NAME = "sales"


class SaleRepository(BaseRepository[SaleInDB, SaleCreateInternal, SaleCreateInternal]):
    model = SaleInDB
    collection_name = COLLECTION_NAME

    async def create_indexes(self):
        try:
            await self.collection.create_index("sale_ref", unique=True)
            await self.collection.create_index([("created_at", DESCENDING)])
            logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")
        except Exception as e:
            logger.exception(f"Erro ao criar índices para {self.collection_name}: {e}")

    async def list_sales(
        self,
        client_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[SaleInDB]:
        query: Dict[str, Any] = self._date_range("created_at", start, end)
        if client_id:
            query["client_id"] = client_id
        if vendor_id:
            query["vendor_id"] = vendor_id
        return await self.list_by(query, sort=[("created_at", DESCENDING), ("_id", DESCENDING)])


async def get_sale_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> SaleRepository:
    return SaleRepository(db)
