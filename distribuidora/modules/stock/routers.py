# distribuidora/modules/stock/routers.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from .models import (
    ProductCreate,
    ProductInDB,
    ProductUpdate,
    StockAdjustPayloadAPI,
    StockAdjustResultAPI,
    StockItemAPI,
    StockMovementAPI,
)
from .repository import (
    ProductRepository,
    StockMovementRepository,
    StockRepository,
    get_product_repository,
    get_stock_movement_repository,
    get_stock_repository,
)
from .services import ProductService, StockService, get_product_service, get_stock_service

products_router = APIRouter()
stock_router = APIRouter()


# --- Products ---

@products_router.get("", response_model=List[ProductInDB], summary="List products", tags=["Products"])
async def list_products_endpoint(
    only_active: bool = Query(True),
    product_repo: ProductRepository = Depends(get_product_repository),
):
    return await product_repo.list_products(only_active=only_active)


@products_router.get("/{product_id}", response_model=ProductInDB, summary="Get product", tags=["Products"])
async def get_product_endpoint(
    product_id: str = Path(...),
    product_service: ProductService = Depends(get_product_service),
    product_repo: ProductRepository = Depends(get_product_repository),
):
    return await product_service.get_product(product_id, product_repo)


@products_router.post(
    "",
    response_model=ProductInDB,
    status_code=status.HTTP_201_CREATED,
    summary="Create product (with empty stock)",
    tags=["Products"],
)
async def create_product_endpoint(
    payload: ProductCreate = Body(...),
    product_service: ProductService = Depends(get_product_service),
    product_repo: ProductRepository = Depends(get_product_repository),
    stock_repo: StockRepository = Depends(get_stock_repository),
):
    return await product_service.create_product(payload, product_repo, stock_repo)


@products_router.patch("/{product_id}", response_model=ProductInDB, summary="Update product", tags=["Products"])
async def update_product_endpoint(
    product_id: str = Path(...),
    payload: ProductUpdate = Body(...),
    product_service: ProductService = Depends(get_product_service),
    product_repo: ProductRepository = Depends(get_product_repository),
):
    return await product_service.update_product(product_id, payload, product_repo)


# --- Stock ---

@stock_router.get("", response_model=List[StockItemAPI], summary="Current stock of active products", tags=["Stock"])
async def list_stock_endpoint(
    stock_service: StockService = Depends(get_stock_service),
    stock_repo: StockRepository = Depends(get_stock_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
):
    return await stock_service.list_stock(stock_repo, product_repo)


@stock_router.get(
    "/movements",
    response_model=List[StockMovementAPI],
    summary="Stock movements (newest first)",
    tags=["Stock"],
)
async def list_movements_endpoint(
    product_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    stock_service: StockService = Depends(get_stock_service),
    movement_repo: StockMovementRepository = Depends(get_stock_movement_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
):
    return await stock_service.list_movements(movement_repo, product_repo, product_id=product_id, start=start, end=end)


@stock_router.get("/{product_id}", response_model=StockItemAPI, summary="Stock of one product", tags=["Stock"])
async def get_stock_endpoint(
    product_id: str = Path(...),
    stock_service: StockService = Depends(get_stock_service),
    stock_repo: StockRepository = Depends(get_stock_repository),
):
    return await stock_service.get_stock(product_id, stock_repo)


@stock_router.post("/adjust", response_model=StockAdjustResultAPI, summary="Stock entry or withdrawal", tags=["Stock"])
async def adjust_stock_endpoint(
    payload: StockAdjustPayloadAPI = Body(...),
    stock_service: StockService = Depends(get_stock_service),
    stock_repo: StockRepository = Depends(get_stock_repository),
    movement_repo: StockMovementRepository = Depends(get_stock_movement_repository),
):
    return await stock_service.adjust(
        payload.product_id,
        payload.kind,
        payload.quantity,
        stock_repo,
        movement_repo,
        note=payload.note,
    )
