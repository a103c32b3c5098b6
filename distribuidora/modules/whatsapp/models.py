# distribuidora/modules/whatsapp/models.py
from typing import Optional

from pydantic import BaseModel, Field

from distribuidora.models.api_common import DocumentModel


class WhatsAppConfigUpsert(BaseModel):
    account_sid: Optional[str] = Field(None, description="Z-API instance id")
    auth_token: Optional[str] = Field(None, description="Z-API instance token")
    whatsapp_number: Optional[str] = None
    active: bool = True


class WhatsAppConfigInDB(DocumentModel):
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    whatsapp_number: Optional[str] = None
    active: bool = True


# --- API Models ---
class WhatsAppStatusAPI(BaseModel):
    connected: bool
    qrCode: Optional[str] = None
    state: Optional[str] = None


class WhatsAppSendPayloadAPI(BaseModel):
    phoneNumber: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class WhatsAppSendResultAPI(BaseModel):
    success: bool
    error: Optional[str] = None
    messageId: Optional[str] = None


class WhatsAppLogoutResultAPI(BaseModel):
    success: bool
    error: Optional[str] = None
