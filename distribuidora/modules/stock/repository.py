# distribuidora/modules/stock/repository.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from distribuidora.core.database import get_database
from distribuidora.core.repository import BaseRepository
from .models import (
    ProductCreate,
    ProductInDB,
    ProductUpdate,
    StockCreateInternal,
    StockInDB,
    StockMovementCreateInternal,
    StockMovementInDB,
)


class ProductRepository(BaseRepository[ProductInDB, ProductCreate, ProductUpdate]):
    model = ProductInDB
    collection_name = "products"

    async def list_products(self, only_active: bool = True) -> List[ProductInDB]:
        query = {"active": True} if only_active else {}
        return await self.list_by(query, sort=[("name", 1)])


class StockRepository(BaseRepository[StockInDB, StockCreateInternal, StockCreateInternal]):
    model = StockInDB
    collection_name = "stock"

    async def create_indexes(self):
        """Uma linha de estoque por produto."""
        try:
            await self.collection.create_index("product_id", unique=True)
            logger.info(f"Índices criados/verificados para a coleção: {self.collection_name}")
        except Exception as e:
            logger.exception(f"Erro ao criar índices para {self.collection_name}: {e}")

    async def get_by_product(self, product_id: str) -> Optional[StockInDB]:
        return await self.get_by({"product_id": str(product_id)})

    async def increment(self, product_id: str, delta: int) -> Optional[StockInDB]:
        """Soma `delta` à quantidade de forma atômica.

        Para saídas (delta < 0) a atualização só acontece se houver saldo;
        retorna None quando o produto não existe ou o saldo é insuficiente.
        """
        query: Dict[str, Any] = {"product_id": str(product_id)}
        if delta < 0:
            query["quantity"] = {"$gte": -delta}
        try:
            document = await self.collection.find_one_and_update(
                query,
                {"$inc": {"quantity": delta}, "$set": {"updated_at": datetime.utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            self._handle_db_exception(e, "increment", query=query)
        return self.model.model_validate(document) if document else None


class StockMovementRepository(BaseRepository[StockMovementInDB, StockMovementCreateInternal, StockMovementCreateInternal]):
    model = StockMovementInDB
    collection_name = "stock_movements"

    async def list_movements(
        self,
        product_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[StockMovementInDB]:
        query: Dict[str, Any] = self._date_range("created_at", start, end)
        if product_id:
            query["product_id"] = str(product_id)
        return await self.list_by(query, sort=[("created_at", DESCENDING), ("_id", DESCENDING)])


async def get_product_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ProductRepository:
    return ProductRepository(db)


async def get_stock_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> StockRepository:
    return StockRepository(db)


async def get_stock_movement_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> StockMovementRepository:
    return StockMovementRepository(db)
