# distribuidora/modules/stock/services.py
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from loguru import logger

from .models import (
    MOVEMENT_KINDS,
    ProductCreate,
    ProductInDB,
    ProductUpdate,
    StockAdjustResultAPI,
    StockCreateInternal,
    StockItemAPI,
    StockMovementAPI,
    StockMovementCreateInternal,
)
from .repository import ProductRepository, StockMovementRepository, StockRepository

INSUFFICIENT_STOCK = "Quantidade insuficiente em estoque"


class ProductService:
    async def get_product(self, product_id: str, product_repo: ProductRepository) -> ProductInDB:
        product = await product_repo.get_by_id(product_id)
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")
        return product

    async def create_product(
        self,
        data: ProductCreate,
        product_repo: ProductRepository,
        stock_repo: StockRepository,
    ) -> ProductInDB:
        """Cria o produto e a sua linha de estoque zerada."""
        product = await product_repo.create(data)
        await stock_repo.create(StockCreateInternal(product_id=product.id, quantity=0))
        logger.bind(product_id=product.id).info(f"Product '{product.name}' created with empty stock.")
        return product

    async def update_product(self, product_id: str, data: ProductUpdate, product_repo: ProductRepository) -> ProductInDB:
        updated = await product_repo.update(product_id, data)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")
        return updated


class StockService:
    async def list_stock(self, stock_repo: StockRepository, product_repo: ProductRepository) -> List[StockItemAPI]:
        """Estoque dos produtos ativos, com nome e tipo."""
        products = {p.id: p for p in await product_repo.list_products(only_active=True)}
        rows = await stock_repo.list_by({"product_id": {"$in": list(products)}})
        items = []
        for row in rows:
            product = products[row.product_id]
            items.append(StockItemAPI(
                id=row.id,
                product_id=row.product_id,
                product_name=product.name,
                product_kind=product.kind,
                quantity=row.quantity,
                updated_at=row.updated_at,
            ))
        return sorted(items, key=lambda item: item.product_name or "")

    async def get_stock(self, product_id: str, stock_repo: StockRepository) -> StockItemAPI:
        row = await stock_repo.get_by_product(product_id)
        if not row:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado no estoque")
        return StockItemAPI(id=row.id, product_id=row.product_id, quantity=row.quantity, updated_at=row.updated_at)

    async def adjust(
        self,
        product_id: str,
        kind: MOVEMENT_KINDS,
        quantity: int,
        stock_repo: StockRepository,
        movement_repo: StockMovementRepository,
        note: Optional[str] = None,
    ) -> StockAdjustResultAPI:
        """Aplica uma entrada ou saída e registra a movimentação."""
        log = logger.bind(product_id=product_id, kind=kind, quantity=quantity, service="StockService")
        if quantity < 1:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantidade deve ser maior que zero")

        delta = quantity if kind == "entrada" else -quantity
        row = await stock_repo.increment(product_id, delta)
        if row is None:
            if await stock_repo.get_by_product(product_id) is None:
                log.warning("Stock adjustment for unknown product.")
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado no estoque")
            log.warning("Stock adjustment rejected: insufficient quantity.")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=INSUFFICIENT_STOCK)

        await movement_repo.create(StockMovementCreateInternal(
            product_id=product_id,
            kind=kind,
            quantity=quantity,
            resulting_quantity=row.quantity,
            note=note,
        ))
        log.info(f"Stock adjusted: {row.quantity - delta} -> {row.quantity}")
        return StockAdjustResultAPI(previous_quantity=row.quantity - delta, current_quantity=row.quantity)

    async def list_movements(
        self,
        movement_repo: StockMovementRepository,
        product_repo: ProductRepository,
        product_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[StockMovementAPI]:
        movements = await movement_repo.list_movements(product_id=product_id, start=start, end=end)
        names: Dict[str, Optional[str]] = {}
        result = []
        for movement in movements:
            if movement.product_id not in names:
                product = await product_repo.get_by_id(movement.product_id)
                names[movement.product_id] = product.name if product else None
            result.append(StockMovementAPI(
                id=movement.id,
                product_id=movement.product_id,
                product_name=names[movement.product_id],
                kind=movement.kind,
                quantity=movement.quantity,
                resulting_quantity=movement.resulting_quantity,
                note=movement.note,
                created_at=movement.created_at,
            ))
        return result


# Factories to get service instances
async def get_product_service() -> ProductService:
    return ProductService()


async def get_stock_service() -> StockService:
    return StockService()
