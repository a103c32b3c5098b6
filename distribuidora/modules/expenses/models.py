# distribuidora/modules/expenses/models.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from distribuidora.models.api_common import DocumentModel


class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    category: Optional[str] = None
    vendor_id: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = Field(None, description="Defaults to now")


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    vendor_id: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


class ExpenseInDB(DocumentModel):
    description: str
    amount: float
    category: Optional[str] = None
    vendor_id: Optional[str] = None
    notes: Optional[str] = None
    date: datetime


class ExpenseAPI(ExpenseInDB):
    vendor_name: Optional[str] = None
