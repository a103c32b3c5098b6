# distribuidora/modules/reports/routers.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from distribuidora.modules.expenses.repository import ExpenseRepository, get_expense_repository
from distribuidora.modules.people.repository import (
    ClientRepository,
    VendorRepository,
    get_client_repository,
    get_vendor_repository,
)
from distribuidora.modules.sales.repository import SaleRepository, get_sale_repository
from distribuidora.modules.stock.repository import (
    ProductRepository,
    StockRepository,
    get_product_repository,
    get_stock_repository,
)
from .models import DashboardAPI, PaymentMethodSalesAPI, RegionSalesAPI, VendorSalesAPI
from .services import ReportService, get_report_service

reports_router = APIRouter()


@reports_router.get("/dashboard", response_model=DashboardAPI, summary="Sales, profit and expenses overview", tags=["Reports"])
async def dashboard_endpoint(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    report_service: ReportService = Depends(get_report_service),
    sale_repo: SaleRepository = Depends(get_sale_repository),
    expense_repo: ExpenseRepository = Depends(get_expense_repository),
    stock_repo: StockRepository = Depends(get_stock_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
):
    return await report_service.dashboard(sale_repo, expense_repo, stock_repo, product_repo, start=start, end=end)


@reports_router.get("/sales-by-vendor", response_model=List[VendorSalesAPI], summary="Sales grouped by vendor", tags=["Reports"])
async def sales_by_vendor_endpoint(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    report_service: ReportService = Depends(get_report_service),
    sale_repo: SaleRepository = Depends(get_sale_repository),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    return await report_service.sales_by_vendor(sale_repo, vendor_repo, start=start, end=end)


@reports_router.get("/sales-by-region", response_model=List[RegionSalesAPI], summary="Sales grouped by client region", tags=["Reports"])
async def sales_by_region_endpoint(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    report_service: ReportService = Depends(get_report_service),
    sale_repo: SaleRepository = Depends(get_sale_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await report_service.sales_by_region(sale_repo, client_repo, start=start, end=end)


@reports_router.get(
    "/sales-by-payment-method",
    response_model=List[PaymentMethodSalesAPI],
    summary="Sales grouped by payment method",
    tags=["Reports"],
)
async def sales_by_payment_method_endpoint(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    report_service: ReportService = Depends(get_report_service),
    sale_repo: SaleRepository = Depends(get_sale_repository),
):
    return await report_service.sales_by_payment_method(sale_repo, start=start, end=end)
