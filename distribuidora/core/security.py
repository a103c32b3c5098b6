# distribuidora/core/security.py

import hmac
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from loguru import logger

from distribuidora.core.config import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

CredentialsException = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "ApiKey"},
)


async def require_api_key(api_key: Annotated[Optional[str], Security(api_key_header)]) -> None:
    """Valida a chave estática. Sem API_KEY configurada a API fica aberta (dev)."""
    expected = get_settings().API_KEY
    if not expected:
        return
    if not api_key or not hmac.compare_digest(api_key.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Request rejected: missing or invalid API key.")
        raise CredentialsException


ApiKeyRequired = Depends(require_api_key)
