# distribuidora/modules/messaging/repository.py
from typing import Any, Dict, List, Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from distribuidora.core.database import get_database
from distribuidora.core.repository import BaseRepository
from .models import CampaignCreate, CampaignInDB, CampaignUpdate, MessageCreateInternal, MessageInDB

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


class MessageRepository(BaseRepository[MessageInDB, MessageCreateInternal, MessageCreateInternal]):
    model = MessageInDB
    collection_name = "messages"

    async def list_messages(
        self,
        client_id: Optional[str] = None,
        kind: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[MessageInDB]:
        query: Dict[str, Any] = {}
        if client_id:
            query["client_id"] = client_id
        if kind:
            query["kind"] = kind
        if status:
            query["status"] = status
        return await self.list_by(query, sort=NEWEST_FIRST)


class CampaignRepository(BaseRepository[CampaignInDB, CampaignCreate, CampaignUpdate]):
    model = CampaignInDB
    collection_name = "campaigns"

    async def list_campaigns(self) -> List[CampaignInDB]:
        return await self.list_by(sort=NEWEST_FIRST)


async def get_message_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> MessageRepository:
    return MessageRepository(db)


async def get_campaign_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> CampaignRepository:
    return CampaignRepository(db)
