# distribuidora/modules/expenses/repository.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from distribuidora.core.database import get_database
from distribuidora.core.repository import BaseRepository
from .models import ExpenseCreate, ExpenseInDB, ExpenseUpdate


class ExpenseRepository(BaseRepository[ExpenseInDB, ExpenseCreate, ExpenseUpdate]):
    model = ExpenseInDB
    collection_name = "expenses"

    async def list_expenses(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        category: Optional[str] = None,
    ) -> List[ExpenseInDB]:
        query: Dict[str, Any] = self._date_range("date", start, end)
        if category:
            query["category"] = category
        return await self.list_by(query, sort=[("date", DESCENDING), ("_id", DESCENDING)])


async def get_expense_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ExpenseRepository:
    return ExpenseRepository(db)
