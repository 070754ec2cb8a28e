"""Health check endpoints."""

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ph_payroll.api.dependencies import StatutoryServiceDep
from ph_payroll.errors import StatutoryTableNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str
    statutory_tables_effective: date | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(tables: StatutoryServiceDep) -> HealthResponse:
    """Report database reachability and the statutory tables in force today."""
    database = "healthy"
    effective: date | None = None
    try:
        await tables.session.execute(text("SELECT 1"))
        effective = (await tables.tables_for(date.today())).effective_start
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        database = "unhealthy"
    except StatutoryTableNotFoundError:
        logger.warning("No statutory tables in force on %s", date.today())

    healthy = database == "healthy" and effective is not None
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=database,
        statutory_tables_effective=effective,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check() -> dict[str, str]:
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
