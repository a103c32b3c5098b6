# distribuidora/modules/people/repository.py
import re
from typing import Any, Dict, List, Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from distribuidora.core.database import get_database
from distribuidora.core.repository import BaseRepository
from .models import ClientCreate, ClientInDB, ClientUpdate, VendorCreate, VendorInDB, VendorUpdate


class VendorRepository(BaseRepository[VendorInDB, VendorCreate, VendorUpdate]):
    model = VendorInDB
    collection_name = "vendors"

    async def list_vendors(self, only_active: bool = True) -> List[VendorInDB]:
        query = {"active": True} if only_active else {}
        return await self.list_by(query, sort=[("name", 1)])


class ClientRepository(BaseRepository[ClientInDB, ClientCreate, ClientUpdate]):
    model = ClientInDB
    collection_name = "clients"

    async def list_clients(
        self,
        neighborhood: Optional[str] = None,
        region: Optional[str] = None,
        search: Optional[str] = None,
        only_active: bool = True,
    ) -> List[ClientInDB]:
        query: Dict[str, Any] = {}
        if only_active:
            query["active"] = True
        if neighborhood:
            query["neighborhood"] = neighborhood
        if region:
            query["region"] = region
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"phone": pattern}]
        return await self.list_by(query, sort=[("name", 1)])

    async def find_active_matching(self, field: str, value: str, exclude_id: Optional[str] = None) -> List[ClientInDB]:
        """Clientes ativos com `field == value` (comparação exata)."""
        query: Dict[str, Any] = {field: value, "active": True}
        excluded = self._to_objectid(exclude_id) if exclude_id else None
        if excluded:
            query["_id"] = {"$ne": excluded}
        return await self.list_by(query)


async def get_vendor_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> VendorRepository:
    return VendorRepository(db)


async def get_client_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ClientRepository:
    return ClientRepository(db)
