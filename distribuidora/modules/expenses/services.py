# distribuidora/modules/expenses/services.py
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from loguru import logger

from distribuidora.core.repository import to_naive_utc
from distribuidora.modules.people.repository import VendorRepository
from .models import ExpenseAPI, ExpenseCreate, ExpenseInDB, ExpenseUpdate
from .repository import ExpenseRepository


class ExpenseService:
    async def list_expenses(
        self,
        expense_repo: ExpenseRepository,
        vendor_repo: VendorRepository,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        category: Optional[str] = None,
    ) -> List[ExpenseAPI]:
        expenses = await expense_repo.list_expenses(start=start, end=end, category=category)
        vendor_names = {}
        for vendor_id in {e.vendor_id for e in expenses if e.vendor_id}:
            vendor = await vendor_repo.get_by_id(vendor_id)
            if vendor:
                vendor_names[vendor_id] = vendor.name
        return [
            ExpenseAPI(**expense.model_dump(), vendor_name=vendor_names.get(expense.vendor_id))
            for expense in expenses
        ]

    async def create_expense(self, data: ExpenseCreate, expense_repo: ExpenseRepository) -> ExpenseInDB:
        create_data = data.model_dump()
        create_data["date"] = to_naive_utc(data.date) or datetime.utcnow()
        expense = await expense_repo.create(create_data)
        logger.bind(expense_id=expense.id).info(f"Expense '{expense.description}' registered ({expense.amount}).")
        return expense

    async def update_expense(self, expense_id: str, data: ExpenseUpdate, expense_repo: ExpenseRepository) -> ExpenseInDB:
        update_data = data.model_dump(exclude_unset=True)
        if "date" in update_data:
            if update_data["date"] is None:
                del update_data["date"]  # data é obrigatória no documento
            else:
                update_data["date"] = to_naive_utc(update_data["date"])
        updated = await expense_repo.update(expense_id, update_data)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Despesa não encontrada")
        return updated

    async def delete_expense(self, expense_id: str, expense_repo: ExpenseRepository) -> None:
        if not await expense_repo.delete(expense_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Despesa não encontrada")


# Factory to get service instance
async def get_expense_service() -> ExpenseService:
    return ExpenseService()
