# tests/modules/reports/test_reports_api.py
import pytest
import pytest_asyncio
from httpx import AsyncClient

from distribuidora.modules.reports.models import NO_REGION
from tests.factories import create_client, create_product, create_vendor

pytestmark = pytest.mark.asyncio

REPORTS = "/api/v1/reports"


@pytest_asyncio.fixture(scope="function")
async def sales_scenario(test_client: AsyncClient):
    """Duas vendas da Ana (cliente do Norte, pix) e uma do Bruno (cliente sem região, dinheiro)."""
    ana = await create_vendor(test_client, name="Ana")
    bruno = await create_vendor(test_client, name="Bruno")
    maria = await create_client(test_client, name="Maria", region="Norte")
    jose = await create_client(test_client, name="José", phone="88911112222")
    gas = await create_product(test_client, name="Gás P13", purchase_price=80, sale_price=110, stock=10)

    async def sell(client, vendor, quantity, payment_method):
        response = await test_client.post("/api/v1/sales", json={
            "client_id": client["id"],
            "vendor_id": vendor["id"],
            "payment_method": payment_method,
            "items": [{"product_id": gas["id"], "quantity": quantity, "unit_price": 110, "subtotal": 110 * quantity}],
        })
        assert response.status_code == 201, response.text

    await sell(maria, ana, 1, "pix")
    await sell(maria, ana, 2, "pix")
    await sell(jose, bruno, 1, "dinheiro")
    await test_client.post("/api/v1/expenses", json={"description": "Combustível", "amount": 50})
    return {"ana": ana, "bruno": bruno, "gas": gas}


async def test_dashboard_empty(test_client: AsyncClient):
    body = (await test_client.get(f"{REPORTS}/dashboard")).json()
    assert body == {
        "total_sales": 0.0,
        "total_profit": 0.0,
        "total_expenses": 0.0,
        "net_profit": 0.0,
        "sales_count": 0,
        "stock": [],
    }


async def test_dashboard_totals(test_client: AsyncClient, sales_scenario):
    body = (await test_client.get(f"{REPORTS}/dashboard")).json()

    assert body["total_sales"] == pytest.approx(440.0)
    assert body["total_profit"] == pytest.approx(120.0)
    assert body["total_expenses"] == pytest.approx(50.0)
    assert body["net_profit"] == pytest.approx(70.0)
    assert body["sales_count"] == 3
    assert [(s["product_name"], s["quantity"]) for s in body["stock"]] == [("Gás P13", 6)]


async def test_dashboard_period_filter(test_client: AsyncClient, sales_scenario):
    body = (await test_client.get(f"{REPORTS}/dashboard", params={"end": "2000-01-01T00:00:00"})).json()

    assert body["sales_count"] == 0
    assert body["total_expenses"] == 0.0
    # o estoque é sempre a posição atual
    assert body["stock"][0]["quantity"] == 6


async def test_sales_by_vendor(test_client: AsyncClient, sales_scenario):
    rows = {r["vendor_name"]: r for r in (await test_client.get(f"{REPORTS}/sales-by-vendor")).json()}

    assert set(rows) == {"Ana", "Bruno"}
    assert rows["Ana"]["vendor_id"] == sales_scenario["ana"]["id"]
    assert rows["Ana"]["sales_count"] == 2
    assert rows["Ana"]["total_sales"] == pytest.approx(330.0)
    assert rows["Ana"]["total_profit"] == pytest.approx(90.0)
    assert rows["Bruno"]["total_sales"] == pytest.approx(110.0)


async def test_sales_by_region(test_client: AsyncClient, sales_scenario):
    rows = {r["region"]: r for r in (await test_client.get(f"{REPORTS}/sales-by-region")).json()}

    assert set(rows) == {"Norte", NO_REGION}
    assert rows["Norte"]["sales_count"] == 2
    assert rows["Norte"]["total_sales"] == pytest.approx(330.0)
    assert rows[NO_REGION]["total_profit"] == pytest.approx(30.0)


async def test_sales_by_payment_method(test_client: AsyncClient, sales_scenario):
    rows = {r["payment_method"]: r for r in (await test_client.get(f"{REPORTS}/sales-by-payment-method")).json()}

    assert rows == {
        "pix": {"payment_method": "pix", "total_sales": pytest.approx(330.0), "sales_count": 2},
        "dinheiro": {"payment_method": "dinheiro", "total_sales": pytest.approx(110.0), "sales_count": 1},
    }
