# distribuidora/main.py

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from distribuidora.api.v1 import api_router
from distribuidora.core.config import settings
from distribuidora.core.database import mongo_manager
from distribuidora.core.logging_config import add_trace_id_middleware, setup_logging
from distribuidora.modules.sales.repository import SaleRepository
from distribuidora.modules.stock.repository import StockRepository
from distribuidora.services.whatsapp import (
    FileCredentialStore,
    MongoCredentialStore,
    ReconnectPolicy,
    SessionManager,
)
from distribuidora.services.whatsapp.bridge import BridgeTransport


def build_session_manager(db: AsyncIOMotorDatabase) -> SessionManager:
    """Monta o SessionManager único do processo a partir das configurações."""
    if settings.WHATSAPP_CREDENTIALS_BACKEND == "mongo":
        store = MongoCredentialStore(db)
    else:
        store = FileCredentialStore(settings.WHATSAPP_AUTH_DIR)

    def transport_factory() -> BridgeTransport:
        return BridgeTransport(settings.WHATSAPP_BRIDGE_URL, send_timeout=settings.WHATSAPP_SEND_TIMEOUT)

    return SessionManager(
        transport_factory,
        store,
        country_prefix=settings.DEFAULT_COUNTRY_PREFIX,
        reconnect_policy=ReconnectPolicy(
            base_delay=settings.WHATSAPP_RECONNECT_BASE_DELAY,
            max_delay=settings.WHATSAPP_RECONNECT_MAX_DELAY,
            max_attempts=settings.WHATSAPP_MAX_RECONNECT_ATTEMPTS,
        ),
        send_timeout=settings.WHATSAPP_SEND_TIMEOUT,
    )


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await StockRepository(db).create_indexes()
    await SaleRepository(db).create_indexes()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    await mongo_manager.connect()
    db = mongo_manager.get_db()
    await ensure_indexes(db)

    manager = None
    if settings.WHATSAPP_ENABLED:
        manager = build_session_manager(db)
        app.state.session_manager = manager
        await manager.connect()
    else:
        logger.warning("WhatsApp session disabled (WHATSAPP_ENABLED=false).")

    try:
        yield
    finally:
        logger.info("Shutting down...")
        if manager is not None:
            await manager.shutdown()
        await mongo_manager.disconnect()


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_trace_id_middleware)

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(request: Request, exc: RuntimeError):
        logger.error(f"Runtime error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})

    @app.get("/", tags=["Status & Health"], summary="Liveness probe")
    async def root():
        return {
            "status": "ok",
            "project": settings.PROJECT_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
