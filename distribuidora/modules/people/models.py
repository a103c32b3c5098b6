# distribuidora/modules/people/models.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from distribuidora.models.api_common import DocumentModel


# --- Vendors ---
class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    commission: float = Field(default=0.0, ge=0, description="Commission percentage")
    active: bool = True


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    commission: Optional[float] = Field(None, ge=0)
    active: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class VendorInDB(DocumentModel):
    name: str
    phone: Optional[str] = None
    commission: float = 0.0
    active: bool = True


# --- Clients ---
class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    region: Optional[str] = None
    notes: Optional[str] = None
    active: bool = True


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    region: Optional[str] = None
    notes: Optional[str] = None
    active: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class ClientInDB(DocumentModel):
    name: str
    phone: str
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    region: Optional[str] = None
    notes: Optional[str] = None
    active: bool = True


# --- API Models ---
class ClientDuplicateCheckAPI(BaseModel):
    name_exists: bool
    phone_exists: bool
    clients: List[ClientInDB] = []
