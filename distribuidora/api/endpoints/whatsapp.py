# distribuidora/api/endpoints/whatsapp.py

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from loguru import logger

from distribuidora.core.logging_config import trace_id_var
from distribuidora.core.security import ApiKeyRequired
from distribuidora.models.api_common import DetailResponse, StatusResponse
from distribuidora.modules.whatsapp.models import (
    WhatsAppConfigInDB,
    WhatsAppConfigUpsert,
    WhatsAppLogoutResultAPI,
    WhatsAppSendPayloadAPI,
    WhatsAppSendResultAPI,
    WhatsAppStatusAPI,
)
from distribuidora.modules.whatsapp.repository import WhatsAppConfigRepository, get_whatsapp_config_repository
from distribuidora.services.notifications import get_session_manager
from distribuidora.services.whatsapp import ConcurrentConnectRejected, PersistenceError, SessionManager

router = APIRouter(prefix="/whatsapp")


@router.get(
    "/status",
    response_model=WhatsAppStatusAPI,
    tags=["WhatsApp"],
    summary="Connection status and pending QR code",
)
async def get_whatsapp_status(manager: SessionManager = Depends(get_session_manager)):
    """Leitura direta do estado da sessão; nunca bloqueia."""
    current = manager.status()
    return WhatsAppStatusAPI(**current.as_dict(), state=current.state.value)


@router.post(
    "/send",
    response_model=WhatsAppSendResultAPI,
    response_model_exclude_none=True,
    tags=["WhatsApp"],
    summary="Send a text message through the WhatsApp session",
    dependencies=[ApiKeyRequired],
)
async def send_whatsapp_message(
    payload: WhatsAppSendPayloadAPI = Body(...),
    manager: SessionManager = Depends(get_session_manager),
):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/whatsapp/send POST")
    result = await manager.send(payload.phoneNumber, payload.message)
    if not result.success:
        log.warning(f"Send failed ({result.error.code}): {result.error}")
    return WhatsAppSendResultAPI(**result.as_dict())


@router.post(
    "/connect",
    response_model=StatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
    tags=["WhatsApp"],
    summary="Start a connection (QR pairing if there are no stored credentials)",
    responses={status.HTTP_409_CONFLICT: {"model": DetailResponse}},
    dependencies=[ApiKeyRequired],
)
async def connect_whatsapp(manager: SessionManager = Depends(get_session_manager)):
    try:
        await manager.connect(strict=True)
    except ConcurrentConnectRejected as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return StatusResponse(status="accepted", message="Connection started. Poll /whatsapp/status for the QR code.")


@router.post(
    "/logout",
    response_model=WhatsAppLogoutResultAPI,
    response_model_exclude_none=True,
    tags=["WhatsApp"],
    summary="Log out and erase stored credentials",
    dependencies=[ApiKeyRequired],
)
async def logout_whatsapp(manager: SessionManager = Depends(get_session_manager)):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/whatsapp/logout POST")
    try:
        await manager.logout()
    except PersistenceError as e:
        log.error(f"Logout completed but credentials could not be erased: {e}")
        return WhatsAppLogoutResultAPI(success=False, error=str(e))
    return WhatsAppLogoutResultAPI(success=True)


@router.get(
    "/config",
    response_model=Optional[WhatsAppConfigInDB],
    tags=["WhatsApp"],
    summary="Get Z-API configuration",
    dependencies=[ApiKeyRequired],
)
async def get_whatsapp_config(config_repo: WhatsAppConfigRepository = Depends(get_whatsapp_config_repository)):
    return await config_repo.get_current()


@router.put(
    "/config",
    response_model=WhatsAppConfigInDB,
    tags=["WhatsApp"],
    summary="Create or replace Z-API configuration",
    dependencies=[ApiKeyRequired],
)
async def upsert_whatsapp_config(
    payload: WhatsAppConfigUpsert = Body(...),
    config_repo: WhatsAppConfigRepository = Depends(get_whatsapp_config_repository),
):
    return await config_repo.upsert(payload)
