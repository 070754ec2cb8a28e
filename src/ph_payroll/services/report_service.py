"""Loads paid payslips and runs the YTD and BIR aggregations."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.reporting import (
    BIRReportBuilder,
    CompanyAnnualSummary,
    PayslipSnapshot,
    YTDAggregator,
    YTDSummary,
)
from ph_payroll.calculators.types import ZERO, PayslipStatus
from ph_payroll.errors import NotFoundError
from ph_payroll.models import Employee, Payslip, PayslipAdjustment


class ReportService:
    """Read-only reporting over stored payslips; safe to re-run at any time."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.aggregator = YTDAggregator()
        self.builder = BIRReportBuilder()

    async def paid_snapshots(
        self,
        year: int,
        employee_id: UUID | None = None,
    ) -> list[PayslipSnapshot]:
        """Paid payslips whose period ends in ``year``, with adjustment totals."""
        adjustments = (
            select(
                PayslipAdjustment.payslip_id,
                func.sum(PayslipAdjustment.amount).label("total"),
            )
            .group_by(PayslipAdjustment.payslip_id)
            .subquery()
        )
        query = (
            select(Payslip, adjustments.c.total)
            .outerjoin(adjustments, adjustments.c.payslip_id == Payslip.payslip_id)
            .where(
                Payslip.status == PayslipStatus.PAID.value,
                Payslip.period_end >= date(year, 1, 1),
                Payslip.period_end <= date(year, 12, 31),
            )
            .order_by(Payslip.period_start)
        )
        if employee_id is not None:
            query = query.where(Payslip.employee_id == employee_id)

        result = await self.session.execute(query)
        return [
            payslip.to_snapshot(Decimal(str(total)) if total is not None else ZERO)
            for payslip, total in result.all()
        ]

    async def employee_ytd(self, employee_id: UUID, year: int) -> YTDSummary:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        payslips = await self.paid_snapshots(year, employee_id)
        return self.aggregator.aggregate(employee.to_identity(), year, payslips)

    async def annual_report(self, year: int) -> tuple[CompanyAnnualSummary, list[YTDSummary]]:
        """Company summary plus alphalist rows for ``year``."""
        payslips = await self.paid_snapshots(year)
        employee_ids = {p.employee_id for p in payslips}
        identities = {}
        if employee_ids:
            rows = await self.session.execute(
                select(Employee).where(Employee.employee_id.in_(employee_ids))
            )
            identities = {row.employee_id: row.to_identity() for row in rows.scalars()}

        rollups = self.aggregator.aggregate_all(identities, year, payslips)
        return self.builder.company_summary(year, rollups), rollups
