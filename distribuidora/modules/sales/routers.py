# distribuidora/modules/sales/routers.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from distribuidora.core.counters import CounterService, get_counter_service
from distribuidora.modules.people.repository import (
    ClientRepository,
    VendorRepository,
    get_client_repository,
    get_vendor_repository,
)
from distribuidora.modules.stock.repository import (
    ProductRepository,
    StockMovementRepository,
    StockRepository,
    get_product_repository,
    get_stock_movement_repository,
    get_stock_repository,
)
from .models import SaleCreateAPI, SaleCreatedAPI, SaleDetailAPI, SaleSummaryAPI
from .repository import SaleRepository, get_sale_repository
from .services import SalesService, get_sales_service

sales_router = APIRouter()


@sales_router.get("", response_model=List[SaleSummaryAPI], summary="List sales (newest first)", tags=["Sales"])
async def list_sales_endpoint(
    client_id: Optional[str] = Query(None),
    vendor_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    sales_service: SalesService = Depends(get_sales_service),
    sale_repo: SaleRepository = Depends(get_sale_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    return await sales_service.list_sales(
        sale_repo, client_repo, vendor_repo, client_id=client_id, vendor_id=vendor_id, start=start, end=end
    )


@sales_router.get("/{sale_id}", response_model=SaleDetailAPI, summary="Get sale with items", tags=["Sales"])
async def get_sale_endpoint(
    sale_id: str = Path(...),
    sales_service: SalesService = Depends(get_sales_service),
    sale_repo: SaleRepository = Depends(get_sale_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
):
    return await sales_service.get_sale(sale_id, sale_repo, client_repo, vendor_repo, product_repo)


@sales_router.post(
    "",
    response_model=SaleCreatedAPI,
    status_code=status.HTTP_201_CREATED,
    summary="Register a sale and withdraw its items from stock",
    tags=["Sales"],
)
async def create_sale_endpoint(
    payload: SaleCreateAPI = Body(...),
    sales_service: SalesService = Depends(get_sales_service),
    sale_repo: SaleRepository = Depends(get_sale_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    stock_repo: StockRepository = Depends(get_stock_repository),
    movement_repo: StockMovementRepository = Depends(get_stock_movement_repository),
    counter_service: CounterService = Depends(get_counter_service),
):
    return await sales_service.create_sale(
        payload,
        sale_repo=sale_repo,
        client_repo=client_repo,
        vendor_repo=vendor_repo,
        product_repo=product_repo,
        stock_repo=stock_repo,
        movement_repo=movement_repo,
        counter_service=counter_service,
    )
