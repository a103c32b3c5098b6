# distribuidora/api/v1.py
from fastapi import APIRouter

from distribuidora.api.endpoints import status, whatsapp
from distribuidora.core.security import ApiKeyRequired
from distribuidora.modules.expenses.routers import expenses_router
from distribuidora.modules.messaging.routers import campaigns_router, messages_router
from distribuidora.modules.people.routers import clients_router, vendors_router
from distribuidora.modules.reports.routers import reports_router
from distribuidora.modules.sales.routers import sales_router
from distribuidora.modules.stock.routers import products_router, stock_router

api_router = APIRouter()

# Públicos: healthcheck e status da sessão (demais rotas do WhatsApp exigem a chave)
api_router.include_router(status.router)
api_router.include_router(whatsapp.router)

# Negócio (X-API-Key)
api_router.include_router(vendors_router, prefix="/vendors", dependencies=[ApiKeyRequired])
api_router.include_router(clients_router, prefix="/clients", dependencies=[ApiKeyRequired])
api_router.include_router(products_router, prefix="/products", dependencies=[ApiKeyRequired])
api_router.include_router(stock_router, prefix="/stock", dependencies=[ApiKeyRequired])
api_router.include_router(sales_router, prefix="/sales", dependencies=[ApiKeyRequired])
api_router.include_router(expenses_router, prefix="/expenses", dependencies=[ApiKeyRequired])
api_router.include_router(messages_router, prefix="/messages", dependencies=[ApiKeyRequired])
api_router.include_router(campaigns_router, prefix="/campaigns", dependencies=[ApiKeyRequired])
api_router.include_router(reports_router, prefix="/reports", dependencies=[ApiKeyRequired])
