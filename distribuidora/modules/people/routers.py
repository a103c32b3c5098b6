# distribuidora/modules/people/routers.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from .models import (
    ClientCreate,
    ClientDuplicateCheckAPI,
    ClientInDB,
    ClientUpdate,
    VendorCreate,
    VendorInDB,
    VendorUpdate,
)
from .repository import ClientRepository, VendorRepository, get_client_repository, get_vendor_repository
from .services import ClientService, VendorService, get_client_service, get_vendor_service

vendors_router = APIRouter()
clients_router = APIRouter()


# --- Vendors ---

@vendors_router.get("", response_model=List[VendorInDB], summary="List vendors", tags=["Vendors"])
async def list_vendors_endpoint(
    only_active: bool = Query(True, description="Return only active vendors"),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    return await vendor_repo.list_vendors(only_active=only_active)


@vendors_router.get("/{vendor_id}", response_model=VendorInDB, summary="Get vendor", tags=["Vendors"])
async def get_vendor_endpoint(
    vendor_id: str = Path(..., description="Vendor ID (ObjectId)"),
    vendor_service: VendorService = Depends(get_vendor_service),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    return await vendor_service.get_vendor(vendor_id, vendor_repo)


@vendors_router.post(
    "",
    response_model=VendorInDB,
    status_code=status.HTTP_201_CREATED,
    summary="Create vendor",
    tags=["Vendors"],
)
async def create_vendor_endpoint(
    payload: VendorCreate = Body(...),
    vendor_service: VendorService = Depends(get_vendor_service),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    return await vendor_service.create_vendor(payload, vendor_repo)


@vendors_router.patch("/{vendor_id}", response_model=VendorInDB, summary="Update vendor", tags=["Vendors"])
async def update_vendor_endpoint(
    vendor_id: str = Path(...),
    payload: VendorUpdate = Body(...),
    vendor_service: VendorService = Depends(get_vendor_service),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    return await vendor_service.update_vendor(vendor_id, payload, vendor_repo)


@vendors_router.delete("/{vendor_id}", response_model=VendorInDB, summary="Deactivate vendor", tags=["Vendors"])
async def delete_vendor_endpoint(
    vendor_id: str = Path(...),
    vendor_service: VendorService = Depends(get_vendor_service),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    """Deleção lógica: o vendedor fica inativo."""
    return await vendor_service.deactivate_vendor(vendor_id, vendor_repo)


# --- Clients ---

@clients_router.get("", response_model=List[ClientInDB], summary="List clients", tags=["Clients"])
async def list_clients_endpoint(
    neighborhood: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Substring of name or phone"),
    only_active: bool = Query(True),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await client_repo.list_clients(
        neighborhood=neighborhood, region=region, search=search, only_active=only_active
    )


@clients_router.get(
    "/duplicates",
    response_model=ClientDuplicateCheckAPI,
    summary="Check for active clients with the same name or phone",
    tags=["Clients"],
)
async def check_client_duplicate_endpoint(
    name: str = Query(""),
    phone: str = Query(""),
    exclude_id: Optional[str] = Query(None),
    client_service: ClientService = Depends(get_client_service),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await client_service.check_duplicate(name, phone, client_repo, exclude_id=exclude_id)


@clients_router.get("/{client_id}", response_model=ClientInDB, summary="Get client", tags=["Clients"])
async def get_client_endpoint(
    client_id: str = Path(..., description="Client ID (ObjectId)"),
    client_service: ClientService = Depends(get_client_service),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await client_service.get_client(client_id, client_repo)


@clients_router.post(
    "",
    response_model=ClientInDB,
    status_code=status.HTTP_201_CREATED,
    summary="Create client",
    tags=["Clients"],
)
async def create_client_endpoint(
    payload: ClientCreate = Body(...),
    client_service: ClientService = Depends(get_client_service),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await client_service.create_client(payload, client_repo)


@clients_router.patch("/{client_id}", response_model=ClientInDB, summary="Update client", tags=["Clients"])
async def update_client_endpoint(
    client_id: str = Path(...),
    payload: ClientUpdate = Body(...),
    client_service: ClientService = Depends(get_client_service),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await client_service.update_client(client_id, payload, client_repo)


@clients_router.delete("/{client_id}", response_model=ClientInDB, summary="Deactivate client", tags=["Clients"])
async def delete_client_endpoint(
    client_id: str = Path(...),
    client_service: ClientService = Depends(get_client_service),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return await client_service.deactivate_client(client_id, client_repo)
