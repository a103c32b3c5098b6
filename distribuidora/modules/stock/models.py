# distribuidora/modules/stock/models.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from distribuidora.models.api_common import DocumentModel, PyObjectId

# --- Constants ---
PRODUCT_KINDS = Literal["gas_p13", "agua_mineral", "agua_dessalinizada"]
MOVEMENT_KINDS = Literal["entrada", "saida"]


# --- Products ---
class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    kind: PRODUCT_KINDS
    purchase_price: float = Field(..., ge=0)
    sale_price: float = Field(..., ge=0)
    active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    kind: Optional[PRODUCT_KINDS] = None
    purchase_price: Optional[float] = Field(None, ge=0)
    sale_price: Optional[float] = Field(None, ge=0)
    active: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class ProductInDB(DocumentModel):
    name: str
    kind: PRODUCT_KINDS
    purchase_price: float
    sale_price: float
    active: bool = True


# --- Stock levels (one row per product) ---
class StockCreateInternal(BaseModel):
    product_id: PyObjectId
    quantity: int = 0


class StockInDB(DocumentModel):
    product_id: PyObjectId
    quantity: int = 0


class StockMovementCreateInternal(BaseModel):
    product_id: PyObjectId
    kind: MOVEMENT_KINDS
    quantity: int
    resulting_quantity: int
    note: Optional[str] = None


class StockMovementInDB(DocumentModel):
    product_id: PyObjectId
    kind: MOVEMENT_KINDS
    quantity: int
    resulting_quantity: int
    note: Optional[str] = None


# --- API Models ---
class StockItemAPI(BaseModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    product_kind: Optional[PRODUCT_KINDS] = None
    quantity: int
    updated_at: Optional[datetime] = None


class StockAdjustPayloadAPI(BaseModel):
    product_id: str
    kind: MOVEMENT_KINDS
    quantity: int = Field(..., ge=1)
    note: Optional[str] = None


class StockAdjustResultAPI(BaseModel):
    previous_quantity: int
    current_quantity: int


class StockMovementAPI(BaseModel):
    id: str
    product_id: str
    product_name: Optional[str] = None
    kind: MOVEMENT_KINDS
    quantity: int
    resulting_quantity: int
    note: Optional[str] = None
    created_at: Optional[datetime] = None
