# distribuidora/models/api_common.py

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

# ObjectId do Mongo exposto como string na API
PyObjectId = Annotated[str, BeforeValidator(str)]


class DocumentModel(BaseModel):
    """Base dos documentos lidos do Mongo (aceita '_id' ou 'id')."""

    id: PyObjectId = Field(..., validation_alias=AliasChoices("_id", "id"))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class StatusResponse(BaseModel):
    """Resposta genérica indicando o status de uma operação."""
    status: str = Field(..., description="Status geral (ex: 'ok', 'error', 'accepted')")
    message: Optional[str] = Field(None, description="Mensagem descritiva opcional.")


class DetailResponse(BaseModel):
    """Resposta genérica para erros."""
    detail: str = Field(..., description="Mensagem detalhada do erro.")
