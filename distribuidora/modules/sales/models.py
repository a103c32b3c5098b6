# distribuidora/modules/sales/models.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from distribuidora.models.api_common import DocumentModel, PyObjectId

# --- Constants ---
PAYMENT_METHODS = Literal["dinheiro", "cartao_credito", "cartao_debito", "pix", "outros"]


class SaleItem(BaseModel):
    product_id: PyObjectId
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    subtotal: float = Field(..., ge=0)


class SaleCreateAPI(BaseModel):
    client_id: str
    vendor_id: str
    payment_method: PAYMENT_METHODS
    notes: Optional[str] = None
    items: List[SaleItem] = Field(..., min_length=1)


class SaleCreateInternal(BaseModel):
    sale_ref: str
    client_id: PyObjectId
    vendor_id: PyObjectId
    payment_method: PAYMENT_METHODS
    notes: Optional[str] = None
    items: List[SaleItem]
    total: float
    profit: float


class SaleInDB(DocumentModel):
    sale_ref: str
    client_id: PyObjectId
    vendor_id: PyObjectId
    payment_method: PAYMENT_METHODS
    notes: Optional[str] = None
    items: List[SaleItem] = []
    total: float = 0.0
    profit: float = 0.0


# --- API Models ---
class SaleCreatedAPI(BaseModel):
    sale_id: str
    sale_ref: str
    total: float
    profit: float


class SaleSummaryAPI(BaseModel):
    id: str
    sale_ref: str
    client_id: str
    client_name: Optional[str] = None
    vendor_id: str
    vendor_name: Optional[str] = None
    payment_method: PAYMENT_METHODS
    total: float
    profit: float
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class SaleItemAPI(SaleItem):
    product_name: Optional[str] = None


class SaleDetailAPI(SaleSummaryAPI):
    client_phone: Optional[str] = None
    items: List[SaleItemAPI] = []
