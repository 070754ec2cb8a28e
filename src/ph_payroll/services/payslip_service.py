"""Payslip service - fetch, compute, and persist payslips."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.contributions import ContributionCalculator, MonthToDate
from ph_payroll.calculators.earnings import EarningsCalculator
from ph_payroll.calculators.payslip import PayslipAssembler, PayslipComputation
from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.tables import StatutoryTableCache
from ph_payroll.calculators.types import (
    ZERO,
    DeductionInputs,
    PayPeriod,
    PayPolicy,
    PayslipStatus,
    TaxFrequency,
)
from ph_payroll.database import acquire_payslip_lock
from ph_payroll.errors import (
    DuplicatePayslipError,
    InvalidTransitionError,
    NotFoundError,
    PayrollValidationError,
    PayslipImmutableError,
)
from ph_payroll.models import DeductionRecord, Employee, Payslip, PayslipAdjustment
from ph_payroll.services.attendance_service import AttendanceService
from ph_payroll.services.state_machine import PayslipStateMachine
from ph_payroll.services.statutory_service import StatutoryTableService

logger = logging.getLogger(__name__)

# Payslip columns copied from a computation on every (re)generation
COMPUTED_FIELDS = (
    "payslip_number",
    "gross_pay",
    "taxable_compensation",
    "sss_amount",
    "sss_wisp_amount",
    "philhealth_amount",
    "pagibig_amount",
    "withholding_tax",
    "allowance_amount",
    "thirteenth_month_pay",
    "total_deductions",
    "net_pay",
    "apply_sss",
    "apply_philhealth",
    "apply_pagibig",
    "calculation_id",
)


class PayslipService:
    """Service for generating payslips and managing their lifecycle.

    Operations:
    - compute_payslip: Pure preview of a payslip, nothing written
    - generate_payslip: Compute and persist idempotently per (employee, period)
    - approve / reopen / mark_paid: Externally triggered status transitions
    - add_adjustment: The only change allowed once a payslip is paid
    """

    def __init__(
        self,
        session: AsyncSession,
        periods: PeriodCalculator,
        policy: PayPolicy | None = None,
        cache: StatutoryTableCache | None = None,
        tax_frequency: TaxFrequency = TaxFrequency.MONTHLY,
        engine_version: str = "1.0.0",
    ):
        self.session = session
        self.periods = periods
        self.policy = policy or PayPolicy()
        self.tax_frequency = tax_frequency
        self.engine_version = engine_version
        self.tables = StatutoryTableService(session, cache)
        self.attendance = AttendanceService(session, self.policy)
        self.earnings = EarningsCalculator(self.policy)

    async def get_payslip(self, payslip_id: UUID) -> Payslip:
        payslip = await self.session.get(Payslip, payslip_id)
        if payslip is None:
            raise NotFoundError("Payslip", payslip_id)
        return payslip

    async def find_payslip(self, employee_id: UUID, period_start: date) -> Payslip | None:
        result = await self.session.execute(
            select(Payslip).where(
                Payslip.employee_id == employee_id,
                Payslip.period_start == period_start,
            )
        )
        return result.scalar_one_or_none()

    async def thirteenth_month_excluded_ytd(self, employee_id: UUID, period: PayPeriod) -> Decimal:
        """Part of the annual 13th-month exclusion used by earlier paid payslips."""
        total = await self.session.scalar(
            select(func.coalesce(func.sum(Payslip.thirteenth_month_pay), 0)).where(
                Payslip.employee_id == employee_id,
                Payslip.status == PayslipStatus.PAID.value,
                Payslip.period_end >= date(period.year, 1, 1),
                Payslip.period_end <= date(period.year, 12, 31),
                Payslip.period_start != period.start,
            )
        )
        return Decimal(str(total or ZERO))

    async def month_to_date(self, employee_id: UUID, period: PayPeriod) -> MonthToDate:
        """Taxable pay and tax of stored payslips for earlier periods of the same month.

        The month is that of ``period.end``. Every stored payslip counts
        whatever its status, since each one withholds against the month.
        """
        earlier = [
            p.start
            for p in self.periods.periods_ending_in_month(period.end.year, period.end.month)
            if p.start < period.start
        ]
        if not earlier:
            return MonthToDate()
        result = await self.session.execute(
            select(
                func.coalesce(func.sum(Payslip.taxable_compensation), 0),
                func.coalesce(func.sum(Payslip.withholding_tax), 0),
            ).where(
                Payslip.employee_id == employee_id,
                Payslip.period_start.in_(earlier),
            )
        )
        taxable, withheld = result.one()
        return MonthToDate(
            taxable_compensation=Decimal(str(taxable or ZERO)),
            withholding_tax=Decimal(str(withheld or ZERO)),
        )

    async def compute_payslip(
        self,
        employee: Employee,
        period: PayPeriod,
        allowance_amount: Decimal = ZERO,
        thirteenth_month_pay: Decimal = ZERO,
        apply_sss: bool = True,
        apply_philhealth: bool = True,
        apply_pagibig: bool = True,
    ) -> PayslipComputation:
        """Run the full pipeline for one employee without writing anything."""
        profile = employee.to_profile()
        summary = await self.attendance.summarize(employee, period)
        earnings = self.earnings.calculate(profile, summary)

        tables = await self.tables.tables_for(period.end)
        assembler = PayslipAssembler(
            ContributionCalculator(tables),
            self.periods,
            policy=self.policy,
            tax_frequency=self.tax_frequency,
            engine_version=self.engine_version,
        )

        record = await self.session.execute(
            select(DeductionRecord).where(
                DeductionRecord.employee_id == employee.employee_id,
                DeductionRecord.period_start == period.start,
            )
        )
        deduction_record = record.scalar_one_or_none()
        deductions = deduction_record.to_inputs() if deduction_record else DeductionInputs()

        excluded_ytd = ZERO
        if thirteenth_month_pay > 0:
            excluded_ytd = min(
                await self.thirteenth_month_excluded_ytd(employee.employee_id, period),
                tables.thirteenth_month_exclusion,
            )

        return assembler.assemble(
            profile,
            period,
            earnings,
            deductions=deductions,
            allowance_amount=allowance_amount,
            thirteenth_month_pay=thirteenth_month_pay,
            thirteenth_month_excluded_ytd=excluded_ytd,
            month_to_date=await self.month_to_date(employee.employee_id, period),
            apply_sss=apply_sss,
            apply_philhealth=apply_philhealth,
            apply_pagibig=apply_pagibig,
        )

    async def generate_payslip(
        self,
        employee_id: UUID,
        period_start: date,
        allowance_amount: Decimal = ZERO,
        thirteenth_month_pay: Decimal = ZERO,
        apply_sss: bool = True,
        apply_philhealth: bool = True,
        apply_pagibig: bool = True,
    ) -> tuple[Payslip, PayslipComputation]:
        """Compute and persist the payslip for (employee, period).

        - Same inputs as the stored payslip: the stored row is returned as is
        - Different inputs, draft or approved: overwritten and reset to draft
        - Paid: rejected; record an adjustment instead

        Raises:
            PayslipImmutableError: The stored payslip is already paid
            DuplicatePayslipError: A concurrent generation won the insert
            PayrollValidationError: The computation produced errors
        """
        period = self.periods.period_starting(period_start)
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        await acquire_payslip_lock(self.session, f"payslip:{employee_id}:{period.start}")

        existing = await self.find_payslip(employee_id, period.start)
        if existing is not None and PayslipStateMachine.are_results_immutable(existing.status):
            raise PayslipImmutableError(existing.payslip_id, existing.status)

        computation = await self.compute_payslip(
            employee,
            period,
            allowance_amount=allowance_amount,
            thirteenth_month_pay=thirteenth_month_pay,
            apply_sss=apply_sss,
            apply_philhealth=apply_philhealth,
            apply_pagibig=apply_pagibig,
        )
        if not computation.success:
            raise PayrollValidationError("; ".join(computation.errors))

        if existing is not None:
            if existing.calculation_id == computation.calculation_id:
                logger.debug("Payslip %s unchanged", existing.payslip_id)
                return existing, computation
            self._apply_computation(existing, computation)
            existing.status = PayslipStatus.DRAFT.value
            existing.approved_at = None
            existing.approved_by = None
            await self.session.flush()
            await self.session.refresh(existing)
            logger.info(
                "Payslip %s recomputed (calculation %s)",
                existing.payslip_id,
                computation.calculation_id,
            )
            return existing, computation

        payslip = Payslip(
            employee_id=employee_id,
            period_start=period.start,
            period_end=period.end,
            status=PayslipStatus.DRAFT.value,
        )
        self._apply_computation(payslip, computation)
        self.session.add(payslip)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicatePayslipError(employee_id, period.start) from exc
        await self.session.refresh(payslip)
        logger.info(
            "Payslip %s created for employee %s period %s",
            payslip.payslip_number,
            employee_id,
            period.start,
        )
        return payslip, computation

    @staticmethod
    def _apply_computation(payslip: Payslip, computation: PayslipComputation) -> None:
        for name in COMPUTED_FIELDS:
            setattr(payslip, name, getattr(computation, name))
        payslip.earnings_breakdown = computation.earnings_breakdown()
        payslip.deductions_breakdown = computation.deductions_breakdown()

    async def approve(self, payslip_id: UUID, actor_id: UUID | None = None) -> Payslip:
        return await self._transition(
            payslip_id,
            PayslipStatus.APPROVED,
            approved_at=datetime.now(timezone.utc),
            approved_by=actor_id,
        )

    async def reopen(self, payslip_id: UUID) -> Payslip:
        return await self._transition(
            payslip_id,
            PayslipStatus.DRAFT,
            approved_at=None,
            approved_by=None,
        )

    async def mark_paid(self, payslip_id: UUID) -> Payslip:
        return await self._transition(
            payslip_id,
            PayslipStatus.PAID,
            paid_at=datetime.now(timezone.utc),
        )

    async def _transition(self, payslip_id: UUID, to_status: PayslipStatus, **values) -> Payslip:
        """Move a payslip to ``to_status`` with a conditional update on its current status."""
        payslip = await self.get_payslip(payslip_id)
        await self.session.refresh(payslip)
        from_status = payslip.status
        PayslipStateMachine.validate_transition(from_status, to_status.value)

        result = await self.session.execute(
            update(Payslip)
            .where(Payslip.payslip_id == payslip_id, Payslip.status == from_status)
            .values(status=to_status.value, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidTransitionError(
                from_status, to_status.value, "payslip changed concurrently"
            )

        await self.session.refresh(payslip)
        logger.info("Payslip %s: %s -> %s", payslip_id, from_status, to_status.value)
        return payslip

    async def add_adjustment(
        self,
        payslip_id: UUID,
        amount: Decimal,
        reason: str,
        actor_id: UUID | None = None,
    ) -> PayslipAdjustment:
        """Record a correction on top of a paid payslip.

        Draft and approved payslips are corrected by regenerating them.
        """
        payslip = await self.get_payslip(payslip_id)
        if not PayslipStateMachine.are_results_immutable(payslip.status):
            raise PayrollValidationError(
                f"payslip is {payslip.status}; regenerate it instead of adjusting",
                field="payslip_id",
            )
        if not reason or not reason.strip():
            raise PayrollValidationError("an adjustment needs a reason", field="reason")
        if amount == 0:
            raise PayrollValidationError("must not be zero", field="amount")

        adjustment = PayslipAdjustment(
            payslip_id=payslip_id,
            amount=amount,
            reason=reason.strip(),
            created_by=actor_id,
        )
        self.session.add(adjustment)
        await self.session.flush()
        await self.session.refresh(adjustment)
        await self.session.refresh(payslip)
        logger.info("Adjustment %s on payslip %s: %s", adjustment.payslip_adjustment_id, payslip_id, amount)
        return adjustment
