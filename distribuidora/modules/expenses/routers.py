# distribuidora/modules/expenses/routers.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status

from distribuidora.modules.people.repository import VendorRepository, get_vendor_repository
from .models import ExpenseAPI, ExpenseCreate, ExpenseInDB, ExpenseUpdate
from .repository import ExpenseRepository, get_expense_repository
from .services import ExpenseService, get_expense_service

expenses_router = APIRouter()


@expenses_router.get("", response_model=List[ExpenseAPI], summary="List expenses (newest first)", tags=["Expenses"])
async def list_expenses_endpoint(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    category: Optional[str] = Query(None),
    expense_service: ExpenseService = Depends(get_expense_service),
    expense_repo: ExpenseRepository = Depends(get_expense_repository),
    vendor_repo: VendorRepository = Depends(get_vendor_repository),
):
    return await expense_service.list_expenses(expense_repo, vendor_repo, start=start, end=end, category=category)


@expenses_router.post(
    "",
    response_model=ExpenseInDB,
    status_code=status.HTTP_201_CREATED,
    summary="Register expense",
    tags=["Expenses"],
)
async def create_expense_endpoint(
    payload: ExpenseCreate = Body(...),
    expense_service: ExpenseService = Depends(get_expense_service),
    expense_repo: ExpenseRepository = Depends(get_expense_repository),
):
    return await expense_service.create_expense(payload, expense_repo)


@expenses_router.patch("/{expense_id}", response_model=ExpenseInDB, summary="Update expense", tags=["Expenses"])
async def update_expense_endpoint(
    expense_id: str = Path(...),
    payload: ExpenseUpdate = Body(...),
    expense_service: ExpenseService = Depends(get_expense_service),
    expense_repo: ExpenseRepository = Depends(get_expense_repository),
):
    return await expense_service.update_expense(expense_id, payload, expense_repo)


@expenses_router.delete(
    "/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete expense",
    tags=["Expenses"],
)
async def delete_expense_endpoint(
    expense_id: str = Path(...),
    expense_service: ExpenseService = Depends(get_expense_service),
    expense_repo: ExpenseRepository = Depends(get_expense_repository),
):
    await expense_service.delete_expense(expense_id, expense_repo)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
