"""API routes."""

from ph_payroll.api.routes.contributions import router as contributions_router
from ph_payroll.api.routes.deductions import router as deductions_router
from ph_payroll.api.routes.health import router as health_router
from ph_payroll.api.routes.overtime import router as overtime_router
from ph_payroll.api.routes.payslips import router as payslips_router
from ph_payroll.api.routes.periods import router as periods_router
from ph_payroll.api.routes.reports import router as reports_router

__all__ = [
    "contributions_router",
    "deductions_router",
    "health_router",
    "overtime_router",
    "payslips_router",
    "periods_router",
    "reports_router",
]
