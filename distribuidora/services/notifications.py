# distribuidora/services/notifications.py
"""Escolha do canal de envio (sessão WhatsApp ou Z-API) para os consumidores da API."""

from typing import Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status
from loguru import logger

from distribuidora.core.config import settings
from distribuidora.modules.whatsapp.repository import WhatsAppConfigRepository, get_whatsapp_config_repository
from distribuidora.services.whatsapp.session import SendResult, SessionManager
from distribuidora.services.zapi_client import ZapiClient

MessageSender = Callable[[str, str], Awaitable[SendResult]]


def get_session_manager(request: Request) -> SessionManager:
    """FastAPI dependency: o SessionManager único criado no lifespan."""
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        logger.error("WhatsApp session manager requested but not initialized.")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="WhatsApp session is not available.")
    return manager


async def get_message_sender(
    request: Request,
    config_repo: WhatsAppConfigRepository = Depends(get_whatsapp_config_repository),
) -> MessageSender:
    """Devolve `send(phone, text) -> SendResult` conforme WHATSAPP_SEND_CHANNEL."""
    if settings.WHATSAPP_SEND_CHANNEL == "zapi":
        client = getattr(request.app.state, "zapi_client", None) or ZapiClient()

        async def send_via_zapi(phone: str, text: str) -> SendResult:
            return await client.send_text(await config_repo.get_current(), phone, text)

        return send_via_zapi
    return get_session_manager(request).send
