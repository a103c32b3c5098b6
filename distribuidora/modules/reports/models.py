# distribuidora/modules/reports/models.py
from typing import List, Optional

from pydantic import BaseModel

from distribuidora.modules.stock.models import StockItemAPI

NO_REGION = "Sem região"


class DashboardAPI(BaseModel):
    total_sales: float = 0.0
    total_profit: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    sales_count: int = 0
    stock: List[StockItemAPI] = []


class VendorSalesAPI(BaseModel):
    vendor_id: str
    vendor_name: Optional[str] = None
    total_sales: float = 0.0
    total_profit: float = 0.0
    sales_count: int = 0


class RegionSalesAPI(BaseModel):
    region: str
    total_sales: float = 0.0
    total_profit: float = 0.0
    sales_count: int = 0


class PaymentMethodSalesAPI(BaseModel):
    payment_method: str
    total_sales: float = 0.0
    sales_count: int = 0
