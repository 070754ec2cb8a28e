"""Payslip line builder with idempotent hashing."""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_HALF_UP, Decimal

from ph_payroll.calculators.types import LineType, PayLine


class LineItemBuilder:
    """Builds payslip lines with deterministic hashing.

    Sign conventions:
    - EARNING, ALLOWANCE, THIRTEENTH_MONTH: positive
    - CONTRIBUTION, TAX, DEDUCTION (employee): negative
    - EMPLOYER_CONTRIBUTION: positive (liability, not part of net)

    Rounding:
    - Pesos to 2 decimals, half-up, once per line
    - Rates kept at 4 decimals for display and hashing
    """

    PRECISION = Decimal("0.0001")
    OUTPUT_PRECISION = Decimal("0.01")

    EMPLOYEE_DEDUCTIONS = (LineType.CONTRIBUTION, LineType.TAX, LineType.DEDUCTION)
    PAY_ADDITIONS = (LineType.EARNING, LineType.ALLOWANCE, LineType.THIRTEENTH_MONTH)

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (centavos)."""
        return amount.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def compute_line_hash(line: PayLine) -> str:
        """Deterministic hash of a line's canonical representation."""
        json_str = json.dumps(line.to_canonical_dict(), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def create_earning_line(
        code: str,
        description: str,
        amount: Decimal,
        quantity: Decimal | None = None,
        rate: Decimal | None = None,
        multiplier: Decimal | None = None,
    ) -> PayLine:
        """Create an earning line (positive amount)."""
        return PayLine(
            line_type=LineType.EARNING,
            code=code,
            description=description,
            amount=LineItemBuilder.round_to_cents(abs(amount)),
            quantity=quantity,
            rate=rate.quantize(LineItemBuilder.PRECISION, rounding=ROUND_HALF_UP) if rate is not None else None,
            multiplier=multiplier,
        )

    @staticmethod
    def create_addition_line(line_type: LineType, code: str, description: str, amount: Decimal) -> PayLine:
        """Create a non-earning addition to pay (allowance or 13th month)."""
        if line_type not in (LineType.ALLOWANCE, LineType.THIRTEENTH_MONTH):
            raise ValueError(f"{line_type.value} is not an addition line type")
        return PayLine(
            line_type=line_type,
            code=code,
            description=description,
            amount=LineItemBuilder.round_to_cents(abs(amount)),
        )

    @staticmethod
    def create_contribution_line(code: str, description: str, amount: Decimal) -> PayLine:
        """Create an employee government contribution line (negative amount)."""
        return PayLine(
            line_type=LineType.CONTRIBUTION,
            code=code,
            description=description,
            amount=-LineItemBuilder.round_to_cents(abs(amount)),
        )

    @staticmethod
    def create_employer_contribution_line(code: str, description: str, amount: Decimal) -> PayLine:
        """Create an employer contribution line (positive amount, liability)."""
        return PayLine(
            line_type=LineType.EMPLOYER_CONTRIBUTION,
            code=code,
            description=description,
            amount=LineItemBuilder.round_to_cents(abs(amount)),
        )

    @staticmethod
    def create_tax_line(amount: Decimal, description: str = "Withholding tax") -> PayLine:
        """Create a withholding tax line (negative amount)."""
        return PayLine(
            line_type=LineType.TAX,
            code="WTAX",
            description=description,
            amount=-LineItemBuilder.round_to_cents(abs(amount)),
        )

    @staticmethod
    def create_deduction_line(code: str, description: str, amount: Decimal) -> PayLine:
        """Create a manual deduction line (negative amount)."""
        return PayLine(
            line_type=LineType.DEDUCTION,
            code=code,
            description=description,
            amount=-LineItemBuilder.round_to_cents(abs(amount)),
        )

    @staticmethod
    def calculate_gross_from_lines(lines: list[PayLine]) -> Decimal:
        """GROSS = sum of EARNING lines."""
        gross = sum((line.amount for line in lines if line.line_type == LineType.EARNING), Decimal("0"))
        return LineItemBuilder.round_to_cents(gross)

    @staticmethod
    def calculate_deductions_from_lines(lines: list[PayLine]) -> Decimal:
        """Total employee deductions as a positive amount."""
        total = sum(
            (line.amount for line in lines if line.line_type in LineItemBuilder.EMPLOYEE_DEDUCTIONS),
            Decimal("0"),
        )
        return LineItemBuilder.round_to_cents(-total)

    @staticmethod
    def calculate_net_from_lines(lines: list[PayLine]) -> Decimal:
        """NET = additions + employee deductions (already negative).

        EMPLOYER_CONTRIBUTION is excluded; it is a liability, not pay.
        """
        net = sum(
            (line.amount for line in lines if line.line_type != LineType.EMPLOYER_CONTRIBUTION),
            Decimal("0"),
        )
        return LineItemBuilder.round_to_cents(net)

    @staticmethod
    def validate_line_signs(lines: list[PayLine]) -> list[str]:
        """Return error messages for lines with the wrong sign (empty if valid)."""
        errors: list[str] = []

        for i, line in enumerate(lines):
            if line.line_type in LineItemBuilder.PAY_ADDITIONS + (LineType.EMPLOYER_CONTRIBUTION,):
                if line.amount < 0:
                    errors.append(
                        f"Line {i} ({line.line_type.value}) has negative amount {line.amount}, expected positive"
                    )
            elif line.amount > 0:
                errors.append(
                    f"Line {i} ({line.line_type.value}) has positive amount {line.amount}, expected negative"
                )

        return errors

    @staticmethod
    def sum_by_type(lines: list[PayLine]) -> dict[LineType, Decimal]:
        """Sum line amounts by type."""
        totals: dict[LineType, Decimal] = {lt: Decimal("0") for lt in LineType}
        for line in lines:
            totals[line.line_type] += line.amount
        return totals
