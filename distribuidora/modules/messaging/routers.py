# distribuidora/modules/messaging/routers.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from distribuidora.modules.people.repository import ClientRepository, get_client_repository
from distribuidora.services.notifications import MessageSender, get_message_sender
from .models import (
    MESSAGE_KINDS,
    MESSAGE_STATUSES,
    CampaignCreate,
    CampaignInDB,
    CampaignUpdate,
    MessageAPI,
    MessageCreateAPI,
    MessageInDB,
    MessageSentAPI,
    MessageStatusUpdateAPI,
)
from .repository import CampaignRepository, MessageRepository, get_campaign_repository, get_message_repository
from .services import CampaignService, MessageService, get_campaign_service, get_message_service

messages_router = APIRouter()
campaigns_router = APIRouter()


# --- Messages ---

@messages_router.get("", response_model=List[MessageAPI], summary="List messages (newest first)", tags=["Messages"])
async def list_messages_endpoint(
    client_id: Optional[str] = Query(None),
    kind: Optional[MESSAGE_KINDS] = Query(None),
    status_filter: Optional[MESSAGE_STATUSES] = Query(None, alias="status"),
    message_service: MessageService = Depends(get_message_service),
    message_repo: MessageRepository = Depends(get_message_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await message_service.list_messages(
        message_repo, client_repo, client_id=client_id, kind=kind, status_filter=status_filter
    )


@messages_router.post(
    "",
    response_model=MessageSentAPI,
    status_code=status.HTTP_201_CREATED,
    summary="Send a WhatsApp message to a client",
    tags=["Messages"],
)
async def send_message_endpoint(
    payload: MessageCreateAPI = Body(...),
    message_service: MessageService = Depends(get_message_service),
    client_repo: ClientRepository = Depends(get_client_repository),
    message_repo: MessageRepository = Depends(get_message_repository),
    send: MessageSender = Depends(get_message_sender),
):
    """Envia pelo canal configurado e registra a mensagem como 'enviada' ou 'erro'."""
    return await message_service.send_to_client(payload, client_repo, message_repo, send)


@messages_router.patch("/{message_id}/status", response_model=MessageInDB, summary="Update message status", tags=["Messages"])
async def update_message_status_endpoint(
    message_id: str = Path(...),
    payload: MessageStatusUpdateAPI = Body(...),
    message_service: MessageService = Depends(get_message_service),
    message_repo: MessageRepository = Depends(get_message_repository),
):
    return await message_service.update_status(message_id, payload.status, message_repo)


# --- Campaigns ---

@campaigns_router.get("", response_model=List[CampaignInDB], summary="List campaigns (newest first)", tags=["Campaigns"])
async def list_campaigns_endpoint(campaign_repo: CampaignRepository = Depends(get_campaign_repository)):
    return await campaign_repo.list_campaigns()


@campaigns_router.get("/{campaign_id}", response_model=CampaignInDB, summary="Get campaign", tags=["Campaigns"])
async def get_campaign_endpoint(
    campaign_id: str = Path(...),
    campaign_service: CampaignService = Depends(get_campaign_service),
    campaign_repo: CampaignRepository = Depends(get_campaign_repository),
):
    return await campaign_service.get_campaign(campaign_id, campaign_repo)


@campaigns_router.post(
    "",
    response_model=CampaignInDB,
    status_code=status.HTTP_201_CREATED,
    summary="Create campaign (draft)",
    tags=["Campaigns"],
)
async def create_campaign_endpoint(
    payload: CampaignCreate = Body(...),
    campaign_service: CampaignService = Depends(get_campaign_service),
    campaign_repo: CampaignRepository = Depends(get_campaign_repository),
):
    return await campaign_service.create_campaign(payload, campaign_repo)


@campaigns_router.patch("/{campaign_id}", response_model=CampaignInDB, summary="Update campaign", tags=["Campaigns"])
async def update_campaign_endpoint(
    campaign_id: str = Path(...),
    payload: CampaignUpdate = Body(...),
    campaign_service: CampaignService = Depends(get_campaign_service),
    campaign_repo: CampaignRepository = Depends(get_campaign_repository),
):
    return await campaign_service.update_campaign(campaign_id, payload, campaign_repo)
