"""YTD and annual reports over stored payslips."""

from decimal import Decimal
from uuid import uuid4

import pytest

from ph_payroll.errors import NotFoundError
from ph_payroll.services import PayslipService, ReportService

from .conftest import NEXT_PERIOD_START, PERIOD_START, add_employee, add_workdays


@pytest.fixture
def payslips(db_session, periods) -> PayslipService:
    return PayslipService(db_session, periods)


@pytest.fixture
def reports(db_session) -> ReportService:
    return ReportService(db_session)


async def pay(payslips: PayslipService, employee_id, period_start=PERIOD_START):
    payslip, _ = await payslips.generate_payslip(employee_id, period_start)
    await payslips.approve(payslip.payslip_id)
    return await payslips.mark_paid(payslip.payslip_id)


class TestEmployeeYTD:
    async def test_sums_paid_payslips_only(self, db_session, payslips, reports):
        employee = await add_employee(db_session)
        await add_workdays(db_session, employee)
        paid = await pay(payslips, employee.employee_id)
        await payslips.add_adjustment(paid.payslip_id, Decimal("-250.00"), "Overpaid allowance")
        # Still a draft, so it must not count
        await payslips.generate_payslip(employee.employee_id, NEXT_PERIOD_START)

        summary = await reports.employee_ytd(employee.employee_id, 2025)

        assert summary.payslip_count == 1
        assert summary.total_gross == Decimal("10000.00")
        assert summary.total_sss == Decimal("550.00")
        assert summary.total_philhealth == Decimal("275.00")
        assert summary.total_pagibig == Decimal("100.00")
        assert summary.total_adjustments == Decimal("-250.00")
        assert summary.identity.employee_code == "EMP001"

    async def test_other_year_is_empty(self, db_session, payslips, reports):
        employee = await add_employee(db_session)
        await pay(payslips, employee.employee_id)

        summary = await reports.employee_ytd(employee.employee_id, 2024)

        assert summary.payslip_count == 0
        assert summary.total_gross == Decimal("0")

    async def test_unknown_employee(self, reports):
        with pytest.raises(NotFoundError):
            await reports.employee_ytd(uuid4(), 2025)


class TestAnnualReport:
    """Test company totals and the alphalist."""

    async def test_company_totals(self, db_session, payslips, reports):
        santos = await add_employee(db_session)
        bonifacio = await add_employee(
            db_session, code="EMP002", first_name="Andres", last_name="Bonifacio", tin=None
        )
        for employee in (santos, bonifacio):
            await add_workdays(db_session, employee)
            await pay(payslips, employee.employee_id)

        summary, alphalist = await reports.annual_report(2025)

        assert summary.total_employees == 2
        assert summary.payslip_count == 2
        assert summary.total_gross == Decimal("20000.00")
        assert summary.total_sss == Decimal("1100.00")
        assert summary.employees_missing_tin == 1
        assert [row.identity.last_name for row in alphalist] == ["Bonifacio", "Santos"]

    async def test_empty_year(self, reports):
        summary, alphalist = await reports.annual_report(2025)
        assert summary.total_employees == 0
        assert summary.total_gross == Decimal("0")
        assert alphalist == []
