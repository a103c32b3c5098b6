# distribuidora/modules/people/services.py
from typing import List, Optional

from fastapi import HTTPException, status
from loguru import logger

from .models import (
    ClientCreate,
    ClientDuplicateCheckAPI,
    ClientInDB,
    ClientUpdate,
    VendorCreate,
    VendorInDB,
    VendorUpdate,
)
from .repository import ClientRepository, VendorRepository


class VendorService:
    async def get_vendor(self, vendor_id: str, vendor_repo: VendorRepository) -> VendorInDB:
        vendor = await vendor_repo.get_by_id(vendor_id)
        if not vendor:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendedor não encontrado")
        return vendor

    async def create_vendor(self, data: VendorCreate, vendor_repo: VendorRepository) -> VendorInDB:
        vendor = await vendor_repo.create(data)
        logger.bind(vendor_id=vendor.id).info(f"Vendor '{vendor.name}' created.")
        return vendor

    async def update_vendor(self, vendor_id: str, data: VendorUpdate, vendor_repo: VendorRepository) -> VendorInDB:
        updated = await vendor_repo.update(vendor_id, data)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendedor não encontrado")
        return updated

    async def deactivate_vendor(self, vendor_id: str, vendor_repo: VendorRepository) -> VendorInDB:
        vendor = await vendor_repo.set_active_status(vendor_id, False)
        if not vendor:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendedor não encontrado")
        return vendor


class ClientService:
    async def get_client(self, client_id: str, client_repo: ClientRepository) -> ClientInDB:
        client = await client_repo.get_by_id(client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado")
        return client

    async def check_duplicate(
        self,
        name: str,
        phone: str,
        client_repo: ClientRepository,
        exclude_id: Optional[str] = None,
    ) -> ClientDuplicateCheckAPI:
        """Procura clientes ativos com o mesmo nome ou telefone."""
        same_name = await client_repo.find_active_matching("name", name, exclude_id) if name else []
        same_phone = await client_repo.find_active_matching("phone", phone, exclude_id) if phone else []

        matches: List[ClientInDB] = []
        seen = set()
        for client in same_name + same_phone:
            if client.id not in seen:
                seen.add(client.id)
                matches.append(client)
        return ClientDuplicateCheckAPI(
            name_exists=bool(same_name),
            phone_exists=bool(same_phone),
            clients=matches,
        )

    async def create_client(self, data: ClientCreate, client_repo: ClientRepository) -> ClientInDB:
        client = await client_repo.create(data)
        logger.bind(client_id=client.id).info(f"Client '{client.name}' created.")
        return client

    async def update_client(self, client_id: str, data: ClientUpdate, client_repo: ClientRepository) -> ClientInDB:
        updated = await client_repo.update(client_id, data)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado")
        return updated

    async def deactivate_client(self, client_id: str, client_repo: ClientRepository) -> ClientInDB:
        client = await client_repo.set_active_status(client_id, False)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado")
        return client


# Factories to get service instances
async def get_vendor_service() -> VendorService:
    return VendorService()


async def get_client_service() -> ClientService:
    return ClientService()
