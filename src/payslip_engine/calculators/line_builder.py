"""Itemized payslip lines with deterministic hashing."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from payslip_engine.calculators.money import format_money
from payslip_engine.calculators.types import ZERO, LineCategory, PayslipRow

WITHHOLDING_CATEGORIES = (LineCategory.INSURANCE, LineCategory.TAX)


@dataclass(frozen=True)
class PayslipLine:
    """One signed line of a payslip."""

    code: str
    category: LineCategory
    amount: Decimal  # Signed per conventions
    quantity: Decimal | None = None
    rate: Decimal | None = None
    explanation: str | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "code": self.code,
            "category": self.category.value,
            "amount": str(self.amount),
            "quantity": str(self.quantity) if self.quantity is not None else None,
            "rate": str(self.rate) if self.rate is not None else None,
        }


class LineItemBuilder:
    """Builds the itemized view of a payslip row.

    Sign conventions:
    - EARNING, ALLOWANCE, BONUS: positive
    - PENALTY: negative (reduces gross)
    - INSURANCE, TAX: negative (withheld from gross)

    GROSS = Σ(EARNING) + Σ(ALLOWANCE) + Σ(BONUS) + Σ(PENALTY)
    NET = GROSS + Σ(INSURANCE) + Σ(TAX)
    """

    @staticmethod
    def compute_line_hash(line: PayslipLine) -> str:
        """Compute deterministic hash for a line item."""
        json_str = json.dumps(line.to_canonical_dict(), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def income_lines(row: PayslipRow) -> list[PayslipLine]:
        """Income-side lines of a row (everything that makes up gross)."""
        lines = [
            PayslipLine(
                code="BASE",
                category=LineCategory.EARNING,
                amount=abs(row.base_salary),
                explanation="Base salary",
            ),
            PayslipLine(
                code="LUNCH",
                category=LineCategory.ALLOWANCE,
                amount=abs(row.lunch_allowance),
                quantity=row.work_days,
                rate=row.lunch_allowance_rate,
                explanation=(
                    f"Lunch: {row.work_days} days @ {format_money(row.lunch_allowance_rate)}"
                ),
            ),
            PayslipLine(
                code="TRANSPORT",
                category=LineCategory.ALLOWANCE,
                amount=abs(row.transport_allowance),
                explanation="Transport allowance",
            ),
            PayslipLine(
                code="PHONE",
                category=LineCategory.ALLOWANCE,
                amount=abs(row.phone_allowance),
                explanation="Phone allowance",
            ),
            PayslipLine(
                code="OTHER",
                category=LineCategory.ALLOWANCE,
                amount=abs(row.other_allowance),
                explanation="Other allowance",
            ),
            PayslipLine(
                code="KPI",
                category=LineCategory.BONUS,
                amount=abs(row.kpi_bonus),
                explanation="KPI bonus",
            ),
            PayslipLine(
                code="OT",
                category=LineCategory.EARNING,
                amount=abs(row.ot_pay),
                quantity=row.ot_hours,
                rate=row.ot_hourly_rate * row.ot_multiplier,
                explanation=f"Overtime: {row.ot_hours} h x{row.ot_multiplier}",
            ),
            PayslipLine(
                code="BONUS",
                category=LineCategory.BONUS,
                amount=abs(row.bonus),
                explanation="Bonus",
            ),
            PayslipLine(
                code="PENALTY",
                category=LineCategory.PENALTY,
                amount=-abs(row.penalty),
                explanation="Penalty",
            ),
        ]
        return lines

    @staticmethod
    def withholding_lines(row: PayslipRow) -> list[PayslipLine]:
        """Insurance and PIT lines of a row."""
        return [
            PayslipLine(
                code="INSURANCE",
                category=LineCategory.INSURANCE,
                amount=-abs(row.insurance_deduction),
                explanation=f"Employee insurance on {format_money(row.insurance_base)}",
            ),
            PayslipLine(
                code="PIT",
                category=LineCategory.TAX,
                amount=-abs(row.pit_deduction),
                explanation=f"Personal income tax on {format_money(row.taxable_income)}",
            ),
        ]

    @staticmethod
    def build_lines(row: PayslipRow, include_zero: bool = False) -> list[PayslipLine]:
        """All lines of a row, omitting zero lines unless asked."""
        lines = LineItemBuilder.income_lines(row) + LineItemBuilder.withholding_lines(row)
        if include_zero:
            return lines
        return [line for line in lines if line.amount != 0]

    @staticmethod
    def calculate_gross_from_lines(lines: list[PayslipLine]) -> Decimal:
        """GROSS = every income-side line, penalties included."""
        gross = ZERO
        for line in lines:
            if line.category not in WITHHOLDING_CATEGORIES:
                gross += line.amount
        return gross

    @staticmethod
    def calculate_net_from_lines(lines: list[PayslipLine]) -> Decimal:
        """NET = sum of all lines."""
        net = ZERO
        for line in lines:
            net += line.amount
        return net

    @staticmethod
    def sum_by_category(lines: list[PayslipLine]) -> dict[LineCategory, Decimal]:
        """Sum line amounts by category."""
        totals: dict[LineCategory, Decimal] = {c: ZERO for c in LineCategory}
        for line in lines:
            totals[line.category] += line.amount
        return totals
