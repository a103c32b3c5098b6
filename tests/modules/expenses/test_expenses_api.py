# tests/modules/expenses/test_expenses_api.py
from datetime import datetime, timedelta

import pytest
from bson import ObjectId
from httpx import AsyncClient

from tests.factories import create_vendor

pytestmark = pytest.mark.asyncio

EXPENSES = "/api/v1/expenses"


async def test_create_expense_defaults_date_to_now(test_client: AsyncClient):
    before = datetime.utcnow() - timedelta(seconds=1)

    response = await test_client.post(EXPENSES, json={"description": "Combustível", "amount": 150.5})

    assert response.status_code == 201
    expense = response.json()
    assert expense["amount"] == 150.5
    assert datetime.fromisoformat(expense["date"]) >= before


async def test_list_filters_and_vendor_name(test_client: AsyncClient):
    vendor = await create_vendor(test_client, name="Ana")
    await test_client.post(EXPENSES, json={
        "description": "Manutenção moto", "amount": 80, "category": "veiculo",
        "vendor_id": vendor["id"], "date": "2026-01-10T10:00:00",
    })
    await test_client.post(EXPENSES, json={
        "description": "Aluguel", "amount": 1200, "category": "fixo", "date": "2026-02-05T09:00:00",
    })
    await test_client.post(EXPENSES, json={
        "description": "Pneu", "amount": 300, "category": "veiculo", "date": "2026-03-01T12:00:00",
    })

    everything = (await test_client.get(EXPENSES)).json()
    assert [e["description"] for e in everything] == ["Pneu", "Aluguel", "Manutenção moto"]

    vehicle = (await test_client.get(EXPENSES, params={"category": "veiculo"})).json()
    assert [e["description"] for e in vehicle] == ["Pneu", "Manutenção moto"]
    assert vehicle[1]["vendor_name"] == "Ana"
    assert vehicle[0]["vendor_name"] is None

    february = (await test_client.get(EXPENSES, params={"start": "2026-02-01T00:00:00", "end": "2026-02-28T23:59:59"})).json()
    assert [e["description"] for e in february] == ["Aluguel"]


async def test_update_expense(test_client: AsyncClient):
    expense = (await test_client.post(EXPENSES, json={"description": "Gasolina", "amount": 100})).json()

    updated = await test_client.patch(f"{EXPENSES}/{expense['id']}", json={"amount": 120, "date": None})

    assert updated.status_code == 200
    assert updated.json()["amount"] == 120
    assert updated.json()["date"] == expense["date"]


async def test_delete_expense(test_client: AsyncClient):
    expense = (await test_client.post(EXPENSES, json={"description": "Gasolina", "amount": 100})).json()

    deleted = await test_client.delete(f"{EXPENSES}/{expense['id']}")
    again = await test_client.delete(f"{EXPENSES}/{expense['id']}")

    assert deleted.status_code == 204
    assert again.status_code == 404
    assert (await test_client.get(EXPENSES)).json() == []


async def test_unknown_expense(test_client: AsyncClient):
    response = await test_client.patch(f"{EXPENSES}/{ObjectId()}", json={"amount": 1})
    assert response.status_code == 404
    assert response.json()["detail"] == "Despesa não encontrada"


async def test_expense_validation(test_client: AsyncClient):
    assert (await test_client.post(EXPENSES, json={"description": "X", "amount": -5})).status_code == 422
    assert (await test_client.post(EXPENSES, json={"amount": 5})).status_code == 422
