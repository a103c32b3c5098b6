# distribuidora/modules/messaging/services.py
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from loguru import logger

from distribuidora.core.logging_config import trace_id_var
from distribuidora.modules.people.repository import ClientRepository
from distribuidora.services.notifications import MessageSender
from distribuidora.services.whatsapp.errors import InvalidRecipient, NotConnected
from .models import (
    MESSAGE_STATUSES,
    CampaignCreate,
    CampaignInDB,
    CampaignUpdate,
    MessageAPI,
    MessageCreateAPI,
    MessageCreateInternal,
    MessageInDB,
    MessageSentAPI,
)
from .repository import CampaignRepository, MessageRepository


class MessageService:
    async def send_to_client(
        self,
        payload: MessageCreateAPI,
        client_repo: ClientRepository,
        message_repo: MessageRepository,
        send: MessageSender,
    ) -> MessageSentAPI:
        """
        Envia a mensagem ao cliente e registra o resultado ('enviada' ou 'erro').
        Não há nova tentativa: uma falha é o resultado final deste envio.
        """
        log = logger.bind(trace_id=trace_id_var.get(), client_id=payload.client_id, service="MessageService")

        client = await client_repo.get_by_id(payload.client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado")
        if not client.phone:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cliente não possui telefone cadastrado")

        log.info(f"Sending '{payload.kind}' message to client '{client.name}'...")
        result = await send(client.phone, payload.content)

        record = await message_repo.create(MessageCreateInternal(
            client_id=client.id,
            kind=payload.kind,
            content=payload.content,
            status="enviada" if result.success else "erro",
            sent_at=datetime.utcnow() if result.success else None,
            external_id=result.message_id,
            error=str(result.error) if result.error else None,
        ))

        if not result.success:
            log.warning(f"Message to client '{client.name}' failed: {result.error}")
            if isinstance(result.error, NotConnected):
                code = status.HTTP_503_SERVICE_UNAVAILABLE
            elif isinstance(result.error, InvalidRecipient):
                code = status.HTTP_400_BAD_REQUEST
            else:
                code = status.HTTP_502_BAD_GATEWAY
            raise HTTPException(status_code=code, detail=str(result.error) or "Erro ao enviar mensagem")

        log.success(f"Message delivered to channel. id={result.message_id}")
        return MessageSentAPI(success=True, messageId=result.message_id, message_record_id=record.id)

    async def list_messages(
        self,
        message_repo: MessageRepository,
        client_repo: ClientRepository,
        client_id: Optional[str] = None,
        kind: Optional[str] = None,
        status_filter: Optional[str] = None,
    ) -> List[MessageAPI]:
        messages = await message_repo.list_messages(client_id=client_id, kind=kind, status=status_filter)
        clients: Dict[str, tuple] = {}
        for cid in {m.client_id for m in messages}:
            client = await client_repo.get_by_id(cid)
            if client:
                clients[cid] = (client.name, client.phone)
        result = []
        for message in messages:
            name, phone = clients.get(message.client_id, (None, None))
            result.append(MessageAPI(**message.model_dump(), client_name=name, client_phone=phone))
        return result

    async def update_status(self, message_id: str, new_status: MESSAGE_STATUSES, message_repo: MessageRepository) -> MessageInDB:
        updated = await message_repo.update(message_id, {"status": new_status})
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mensagem não encontrada")
        return updated


class CampaignService:
    async def get_campaign(self, campaign_id: str, campaign_repo: CampaignRepository) -> CampaignInDB:
        campaign = await campaign_repo.get_by_id(campaign_id)
        if not campaign:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campanha não encontrada")
        return campaign

    async def create_campaign(self, data: CampaignCreate, campaign_repo: CampaignRepository) -> CampaignInDB:
        create_data = data.model_dump()
        create_data.update(status="rascunho", sent_at=None, total_clients=0, total_sent=0)
        campaign = await campaign_repo.create(create_data)
        logger.bind(campaign_id=campaign.id).info(f"Campaign '{campaign.name}' created as draft.")
        return campaign

    async def update_campaign(self, campaign_id: str, data: CampaignUpdate, campaign_repo: CampaignRepository) -> CampaignInDB:
        updated = await campaign_repo.update(campaign_id, data)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campanha não encontrada")
        return updated


# Factories to get service instances
async def get_message_service() -> MessageService:
    return MessageService()


async def get_campaign_service() -> CampaignService:
    return CampaignService()
