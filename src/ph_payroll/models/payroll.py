"""Deduction, payslip, adjustment, and statutory table models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ph_payroll.calculators.reporting import PayslipSnapshot
from ph_payroll.calculators.types import DeductionInputs
from ph_payroll.models.base import Base, TimestampMixin

ZERO = Decimal("0")


class DeductionRecord(Base, TimestampMixin):
    """Manual deduction entries for one (employee, period).

    Government amounts left NULL are auto-computed at assembly time.
    ``version`` is bumped on every write and checked on update.
    """

    __tablename__ = "deduction_record"

    deduction_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)

    vale_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    uniform_ppe_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    sss_salary_loan: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    sss_calamity_loan: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    pagibig_salary_loan: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    pagibig_calamity_loan: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    other_deduction: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    sss_contribution: Mapped[Decimal | None] = mapped_column(nullable=True)
    sss_wisp: Mapped[Decimal | None] = mapped_column(nullable=True)
    philhealth_contribution: Mapped[Decimal | None] = mapped_column(nullable=True)
    pagibig_contribution: Mapped[Decimal | None] = mapped_column(nullable=True)
    withholding_tax: Mapped[Decimal | None] = mapped_column(nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_by: Mapped[UUID | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "period_start", name="deduction_record_employee_period_unique"),
    )

    def to_inputs(self) -> DeductionInputs:
        return DeductionInputs(
            vale_amount=self.vale_amount,
            uniform_ppe_amount=self.uniform_ppe_amount,
            sss_salary_loan=self.sss_salary_loan,
            sss_calamity_loan=self.sss_calamity_loan,
            pagibig_salary_loan=self.pagibig_salary_loan,
            pagibig_calamity_loan=self.pagibig_calamity_loan,
            other_deduction=self.other_deduction,
            sss_contribution=self.sss_contribution,
            sss_wisp=self.sss_wisp,
            philhealth_contribution=self.philhealth_contribution,
            pagibig_contribution=self.pagibig_contribution,
            withholding_tax=self.withholding_tax,
        )


class Payslip(Base, TimestampMixin):
    """Per-period payslip. Monetary fields are frozen once status is paid."""

    __tablename__ = "payslip"

    payslip_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    payslip_number: Mapped[str] = mapped_column(String, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    earnings_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(nullable=False, default=list)
    deductions_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(nullable=False, default=list)
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    taxable_compensation: Mapped[Decimal] = mapped_column(nullable=False)
    sss_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    sss_wisp_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    philhealth_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    pagibig_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    withholding_tax: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    allowance_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    thirteenth_month_pay: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)

    apply_sss: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    apply_philhealth: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    apply_pagibig: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    calculation_id: Mapped[UUID] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "period_start", name="payslip_employee_period_unique"),
        CheckConstraint("status IN ('draft', 'approved', 'paid')", name="payslip_status_check"),
        CheckConstraint("period_end >= period_start", name="payslip_dates_check"),
    )

    adjustments: Mapped[list[PayslipAdjustment]] = relationship(
        back_populates="payslip",
        lazy="selectin",
        order_by="PayslipAdjustment.created_at",
    )

    def to_snapshot(self, adjustments_total: Decimal = ZERO) -> PayslipSnapshot:
        return PayslipSnapshot(
            payslip_id=self.payslip_id,
            employee_id=self.employee_id,
            period_start=self.period_start,
            period_end=self.period_end,
            status=self.status,
            gross_pay=self.gross_pay,
            taxable_compensation=self.taxable_compensation,
            withholding_tax=self.withholding_tax,
            sss_amount=self.sss_amount,
            philhealth_amount=self.philhealth_amount,
            pagibig_amount=self.pagibig_amount,
            thirteenth_month_pay=self.thirteenth_month_pay,
            adjustments_total=adjustments_total,
        )


class PayslipAdjustment(Base, TimestampMixin):
    """Correction layered on top of a paid payslip."""

    __tablename__ = "payslip_adjustment"

    payslip_adjustment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payslip_id: Mapped[UUID] = mapped_column(
        ForeignKey("payslip.payslip_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint("amount <> 0", name="payslip_adjustment_nonzero_check"),
    )

    payslip: Mapped[Payslip] = relationship(back_populates="adjustments")


class StatutoryTableVersion(Base, TimestampMixin):
    """Statutory bracket tables with effective dating."""

    __tablename__ = "statutory_table_version"

    statutory_table_version_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    effective_start: Mapped[date] = mapped_column(Date, nullable=False)
    effective_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    source_url: Mapped[str] = mapped_column(String, nullable=False)
    logic_hash: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    payload_json: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint(
            "effective_end IS NULL OR effective_end >= effective_start",
            name="statutory_table_version_dates_check",
        ),
    )
