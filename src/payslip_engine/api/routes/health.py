"""Health, readiness and liveness probes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from payslip_engine.api.dependencies import DbSession
from payslip_engine.calculators.payroll_config import InvalidPayrollConfigError
from payslip_engine.config import get_settings
from payslip_engine.services.config_store import load_payroll_config

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str
    engine_version: str


class ReadinessResponse(BaseModel):
    """Ready once a payroll config snapshot can be built from storage."""

    status: str
    config_fingerprint: str | None = None
    detail: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """Report the database connection; degraded rather than failing."""
    database = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        database = "unhealthy"

    return HealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=database,
        engine_version=get_settings().engine_version,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: DbSession):
    try:
        config = await load_payroll_config(db)
    except (SQLAlchemyError, InvalidPayrollConfigError) as e:
        logger.warning("Not ready: %s", e)
        return JSONResponse(
            status_code=503,
            content=ReadinessResponse(status="not_ready", detail=str(e)).model_dump(),
        )
    return ReadinessResponse(status="ready", config_fingerprint=config.fingerprint())


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
