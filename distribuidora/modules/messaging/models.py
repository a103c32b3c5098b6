# distribuidora/modules/messaging/models.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from distribuidora.models.api_common import DocumentModel, PyObjectId

# --- Constants ---
MESSAGE_KINDS = Literal["automatica", "promocao", "data_especial", "manual"]
MESSAGE_STATUSES = Literal["pendente", "enviada", "erro", "entregue", "lida"]
CAMPAIGN_KINDS = Literal["promocao", "data_especial", "reativacao"]
CAMPAIGN_STATUSES = Literal["rascunho", "agendada", "enviada", "cancelada"]


# --- Messages ---
class MessageCreateAPI(BaseModel):
    client_id: str
    kind: MESSAGE_KINDS
    content: str = Field(..., min_length=1)


class MessageCreateInternal(BaseModel):
    client_id: PyObjectId
    kind: MESSAGE_KINDS
    content: str
    status: MESSAGE_STATUSES = "pendente"
    sent_at: Optional[datetime] = None
    external_id: Optional[str] = Field(None, description="Id returned by the WhatsApp channel")
    error: Optional[str] = None


class MessageInDB(DocumentModel):
    client_id: PyObjectId
    kind: MESSAGE_KINDS
    content: str
    status: MESSAGE_STATUSES = "pendente"
    sent_at: Optional[datetime] = None
    external_id: Optional[str] = None
    error: Optional[str] = None


class MessageAPI(MessageInDB):
    client_name: Optional[str] = None
    client_phone: Optional[str] = None


class MessageStatusUpdateAPI(BaseModel):
    status: MESSAGE_STATUSES


class MessageSentAPI(BaseModel):
    success: bool = True
    messageId: Optional[str] = None
    message_record_id: Optional[str] = None


# --- Campaigns ---
class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1)
    kind: CAMPAIGN_KINDS
    message: str = Field(..., min_length=1)
    filters: Optional[str] = Field(None, description="Free-text audience filter")
    scheduled_at: Optional[datetime] = None


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    kind: Optional[CAMPAIGN_KINDS] = None
    message: Optional[str] = Field(None, min_length=1)
    filters: Optional[str] = None
    status: Optional[CAMPAIGN_STATUSES] = None
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    total_clients: Optional[int] = Field(None, ge=0)
    total_sent: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(extra="ignore")


class CampaignInDB(DocumentModel):
    name: str
    kind: CAMPAIGN_KINDS
    message: str
    filters: Optional[str] = None
    status: CAMPAIGN_STATUSES = "rascunho"
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    total_clients: int = 0
    total_sent: int = 0
