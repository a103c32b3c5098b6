# distribuidora/api/endpoints/status.py
import time as process_time
import uuid
from datetime import datetime, timezone
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends, Request, Response, status as http_status
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field

from distribuidora.core.database import get_database
from distribuidora.core.logging_config import trace_id_var


class ComponentStatus(BaseModel):
    status: Literal["ok", "error", "unavailable"] = "ok"
    message: Optional[str] = None


class HealthCheckResponse(BaseModel):
    overall_status: Literal["ok", "error"] = "ok"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = Field(..., description="Process uptime in seconds")
    components: Dict[str, ComponentStatus]


PROCESS_START_TIME = process_time.monotonic()

router = APIRouter()


@router.get(
    "/healthcheck",
    response_model=HealthCheckResponse,
    tags=["Status & Health"],
    summary="Application Health and Component Status Check",
)
async def get_application_health(request: Request, db: AsyncIOMotorDatabase = Depends(get_database)):
    trace_id = trace_id_var.get()
    if trace_id == "unset":
        trace_id = f"health_{uuid.uuid4().hex[:8]}"
    log = logger.bind(trace_id=trace_id, api_endpoint="/healthcheck GET")
    log.info("Performing application health check...")

    component_statuses: Dict[str, ComponentStatus] = {}
    critical_ok = True

    # MongoDB é crítico
    try:
        await db.command("ping")
        component_statuses["database_mongodb"] = ComponentStatus(status="ok")
    except Exception as e:
        err_msg = f"MongoDB connection check failed: {e}"
        log.error(err_msg)
        component_statuses["database_mongodb"] = ComponentStatus(status="error", message=err_msg)
        critical_ok = False

    # Sessão WhatsApp não derruba o healthcheck: reconecta sozinha
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        component_statuses["whatsapp_session"] = ComponentStatus(status="unavailable", message="Session manager disabled.")
    else:
        session = manager.status()
        component_statuses["whatsapp_session"] = ComponentStatus(
            status="ok" if session.connected else "unavailable",
            message=f"state={session.state.value}",
        )

    response_payload = HealthCheckResponse(
        overall_status="ok" if critical_ok else "error",
        uptime_seconds=process_time.monotonic() - PROCESS_START_TIME,
        components=component_statuses,
    )
    status_code = http_status.HTTP_200_OK if critical_ok else http_status.HTTP_503_SERVICE_UNAVAILABLE
    return Response(
        content=response_payload.model_dump_json(exclude_none=True),
        status_code=status_code,
        media_type="application/json",
    )
