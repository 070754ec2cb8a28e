"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.tables import StatutoryTableCache
from ph_payroll.calculators.types import PayPolicy, TaxFrequency
from ph_payroll.config import Settings, get_settings
from ph_payroll.database import init_db
from ph_payroll.services import (
    DeductionService,
    OvertimeService,
    PayslipService,
    ReportService,
    StatutoryTableService,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_statutory_cache(request: Request) -> StatutoryTableCache:
    """Table cache owned by the application instance."""
    return request.app.state.statutory_cache


def _parse_employee_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Employee-ID format",
        )


async def get_actor_id(
    x_employee_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract the acting employee ID from header."""
    if not x_employee_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Employee-ID header is required",
        )
    return _parse_employee_id(x_employee_id)


async def get_optional_actor_id(
    x_employee_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Acting employee ID when supplied; used for audit columns only."""
    if not x_employee_id:
        return None
    return _parse_employee_id(x_employee_id)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]
TableCache = Annotated[StatutoryTableCache, Depends(get_statutory_cache)]
ActorId = Annotated[UUID, Depends(get_actor_id)]
OptionalActorId = Annotated[UUID | None, Depends(get_optional_actor_id)]


def get_periods(settings: AppSettings) -> PeriodCalculator:
    return PeriodCalculator(anchor=settings.period_anchor)


Periods = Annotated[PeriodCalculator, Depends(get_periods)]


def get_payslip_service(
    db: DbSession, settings: AppSettings, periods: Periods, cache: TableCache
) -> PayslipService:
    return PayslipService(
        db,
        periods,
        policy=PayPolicy.from_settings(settings),
        cache=cache,
        tax_frequency=TaxFrequency(settings.tax_frequency),
        engine_version=settings.engine_version,
    )


def get_deduction_service(
    db: DbSession, settings: AppSettings, periods: Periods, cache: TableCache
) -> DeductionService:
    return DeductionService(db, periods, policy=PayPolicy.from_settings(settings), cache=cache)


def get_overtime_service(db: DbSession) -> OvertimeService:
    return OvertimeService(db)


def get_report_service(db: DbSession) -> ReportService:
    return ReportService(db)


def get_statutory_service(db: DbSession, cache: TableCache) -> StatutoryTableService:
    return StatutoryTableService(db, cache)


PayslipServiceDep = Annotated[PayslipService, Depends(get_payslip_service)]
DeductionServiceDep = Annotated[DeductionService, Depends(get_deduction_service)]
OvertimeServiceDep = Annotated[OvertimeService, Depends(get_overtime_service)]
ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
StatutoryServiceDep = Annotated[StatutoryTableService, Depends(get_statutory_service)]
