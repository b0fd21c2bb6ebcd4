"""
Health Check Endpoints.

The probes read from the ``moneyview`` table itself, so "healthy" means the
ingest endpoint can reach the lead store, not merely that a connection opens.
"""
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ...core.config import Settings, get_settings
from ...core.responses import HealthCheck, HealthResponse
from ...db.session import DbSession
from ...repositories.moneyview_repository import MoneyviewRepository

log = structlog.get_logger(__name__)

router = APIRouter()


async def _check_lead_store(db: DbSession) -> HealthCheck:
    try:
        latency_ms = await MoneyviewRepository(db).ping()
    except (SQLAlchemyError, OSError) as exc:
        log.warning("lead_store_unreachable", error=str(exc))
        return HealthCheck(status="unhealthy", message=str(exc))
    return HealthCheck(status="healthy", latency_ms=latency_ms, message="moneyview reachable")


LeadStoreCheck = Annotated[HealthCheck, Depends(_check_lead_store)]


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Service metadata plus a timed read from the moneyview table.",
)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
    lead_store: LeadStoreCheck,
) -> HealthResponse:
    return HealthResponse(
        status=lead_store.status,
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.APP_ENV,
        checks={"database": lead_store},
    )


@router.get(
    "/ready",
    summary="Readiness probe",
    description="200 when the moneyview table is readable, 503 otherwise.",
    responses={503: {"description": "Lead store unreachable"}},
)
async def readiness_probe(lead_store: LeadStoreCheck) -> JSONResponse:
    if lead_store.status != "healthy":
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return JSONResponse(content={"status": "ready"})


@router.get(
    "/live",
    summary="Liveness probe",
    description="Returns 200 while the process is serving requests.",
)
async def liveness_probe() -> dict[str, str]:
    return {"status": "alive"}
