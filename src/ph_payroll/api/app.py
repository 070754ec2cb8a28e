"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ph_payroll import __version__
from ph_payroll.api.routes import (
    contributions_router,
    deductions_router,
    health_router,
    overtime_router,
    payslips_router,
    periods_router,
    reports_router,
)
from ph_payroll.calculators.tables import StatutoryTableCache
from ph_payroll.config import get_settings
from ph_payroll.database import dispose_db, init_db
from ph_payroll.errors import (
    DeductionVersionConflictError,
    DuplicatePayslipError,
    InvalidTransitionError,
    NotFoundError,
    OvertimeOwnershipError,
    PayrollError,
    PayrollValidationError,
    PayslipImmutableError,
    StatutoryTableNotFoundError,
)

logger = logging.getLogger(__name__)

# First match wins; subclasses before their bases
ERROR_STATUS: tuple[tuple[type[PayrollError], int], ...] = (
    (PayrollValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StatutoryTableNotFoundError, status.HTTP_404_NOT_FOUND),
    (OvertimeOwnershipError, status.HTTP_403_FORBIDDEN),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (PayslipImmutableError, status.HTTP_409_CONFLICT),
    (DeductionVersionConflictError, status.HTTP_409_CONFLICT),
    (DuplicatePayslipError, status.HTTP_409_CONFLICT),
)


def status_for(exc: PayrollError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def error_context(exc: PayrollError) -> dict[str, str] | None:
    """Structured attributes of the error, stringified for JSON."""
    context = {
        key: str(value)
        for key, value in vars(exc).items()
        if not key.startswith("_") and value is not None
    }
    return context or None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    init_db()
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="PH Payroll Engine API",
        description="Philippine bi-monthly payroll computation and compliance reporting",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.statutory_cache = StatutoryTableCache(
        ttl_seconds=settings.statutory_cache_ttl_seconds
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Map domain errors to status codes."""
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_for(exc),
            content={
                "detail": str(exc),
                "code": exc.code,
                "context": error_context(exc),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    for router in (
        periods_router,
        contributions_router,
        overtime_router,
        deductions_router,
        payslips_router,
        reports_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
