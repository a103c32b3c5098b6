# distribuidora/modules/reports/services.py
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from distribuidora.modules.expenses.repository import ExpenseRepository
from distribuidora.modules.people.repository import ClientRepository, VendorRepository
from distribuidora.modules.sales.repository import SaleRepository
from distribuidora.modules.stock.repository import ProductRepository, StockRepository
from distribuidora.modules.stock.services import StockService
from .models import NO_REGION, DashboardAPI, PaymentMethodSalesAPI, RegionSalesAPI, VendorSalesAPI


class ReportService:
    """Agregações simples feitas em memória sobre as vendas do período."""

    async def dashboard(
        self,
        sale_repo: SaleRepository,
        expense_repo: ExpenseRepository,
        stock_repo: StockRepository,
        product_repo: ProductRepository,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> DashboardAPI:
        sales = await sale_repo.list_sales(start=start, end=end)
        expenses = await expense_repo.list_expenses(start=start, end=end)
        stock = await StockService().list_stock(stock_repo, product_repo)

        total_sales = round(sum(s.total for s in sales), 2)
        total_profit = round(sum(s.profit for s in sales), 2)
        total_expenses = round(sum(e.amount for e in expenses), 2)
        logger.debug(f"Dashboard: {len(sales)} sale(s), {len(expenses)} expense(s) in period.")
        return DashboardAPI(
            total_sales=total_sales,
            total_profit=total_profit,
            total_expenses=total_expenses,
            net_profit=round(total_profit - total_expenses, 2),
            sales_count=len(sales),
            stock=stock,
        )

    async def sales_by_vendor(
        self,
        sale_repo: SaleRepository,
        vendor_repo: VendorRepository,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[VendorSalesAPI]:
        groups: Dict[str, VendorSalesAPI] = {}
        for sale in await sale_repo.list_sales(start=start, end=end):
            group = groups.get(sale.vendor_id)
            if group is None:
                vendor = await vendor_repo.get_by_id(sale.vendor_id)
                group = groups[sale.vendor_id] = VendorSalesAPI(
                    vendor_id=sale.vendor_id, vendor_name=vendor.name if vendor else None
                )
            group.total_sales += sale.total
            group.total_profit += sale.profit
            group.sales_count += 1
        return list(groups.values())

    async def sales_by_region(
        self,
        sale_repo: SaleRepository,
        client_repo: ClientRepository,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[RegionSalesAPI]:
        regions: Dict[str, str] = {}
        groups: Dict[str, RegionSalesAPI] = {}
        for sale in await sale_repo.list_sales(start=start, end=end):
            if sale.client_id not in regions:
                client = await client_repo.get_by_id(sale.client_id)
                regions[sale.client_id] = (client.region if client else None) or NO_REGION
            region = regions[sale.client_id]
            group = groups.setdefault(region, RegionSalesAPI(region=region))
            group.total_sales += sale.total
            group.total_profit += sale.profit
            group.sales_count += 1
        return list(groups.values())

    async def sales_by_payment_method(
        self,
        sale_repo: SaleRepository,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[PaymentMethodSalesAPI]:
        groups: Dict[str, PaymentMethodSalesAPI] = {}
        for sale in await sale_repo.list_sales(start=start, end=end):
            group = groups.setdefault(sale.payment_method, PaymentMethodSalesAPI(payment_method=sale.payment_method))
            group.total_sales += sale.total
            group.sales_count += 1
        return list(groups.values())


# Factory to get service instance
async def get_report_service() -> ReportService:
    return ReportService()
