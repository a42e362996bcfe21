"""Statutory deductions: employee insurance and progressive personal income tax."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from payslip_engine.calculators.money import round_money
from payslip_engine.calculators.payroll_config import PayrollConfig, TaxBracket
from payslip_engine.calculators.types import ZERO, ClampEvent, DeductionResult

logger = logging.getLogger(__name__)


class TaxCalculator:
    """Computes insurance withholding and PIT for one gross figure.

    Pipeline (per row):
    1) insurance = insurance_base * insurance_employee_rate
    2) taxable = gross - insurance - personal threshold - dependents
    3) PIT = marginal tax over config.tax_brackets
    Any term that comes out negative is clamped to zero and recorded as a
    ClampEvent instead of being carried into net salary.
    """

    def __init__(self, config: PayrollConfig):
        self.config = config

    def compute_deductions(
        self,
        gross: Decimal,
        insurance_base: Decimal,
        has_insurance: bool = True,
        dependents_count: int = 0,
    ) -> DeductionResult:
        """Compute insurance, taxable income and PIT for a gross salary."""
        clamps: list[ClampEvent] = []
        precision = self.config.money_precision

        if has_insurance:
            insurance = round_money(
                insurance_base * self.config.insurance_employee_rate, precision
            )
        else:
            insurance = ZERO
        insurance = self._clamp("insurance_deduction", insurance, clamps)

        allowance = self.config.personal_deduction_threshold + (
            self.config.dependent_deduction * max(dependents_count, 0)
        )
        taxable = self._clamp("taxable_income", gross - insurance - allowance, clamps)

        pit = round_money(self.progressive_tax(taxable), precision)
        pit = self._clamp("pit_deduction", pit, clamps)

        return DeductionResult(
            insurance_deduction=insurance,
            taxable_income=taxable,
            pit_deduction=pit,
            clamps=tuple(clamps),
        )

    def progressive_tax(self, taxable_income: Decimal) -> Decimal:
        """Marginal tax of ``taxable_income`` over the configured brackets."""
        return calculate_progressive_tax(taxable_income, self.config.tax_brackets)

    @staticmethod
    def _clamp(term: str, value: Decimal, clamps: list[ClampEvent]) -> Decimal:
        if value >= 0:
            return value
        clamps.append(ClampEvent(term=term, raw_value=value))
        logger.debug("Clamped negative %s %s to zero", term, value)
        return ZERO


def calculate_progressive_tax(
    taxable_income: Decimal, brackets: Iterable[TaxBracket]
) -> Decimal:
    """Apply each bracket's rate only to the slice of income inside it.

    Income above the last finite ceiling is taxed at the last bracket's rate.
    """
    if taxable_income <= 0:
        return ZERO

    total_tax = ZERO
    lower = ZERO
    rate = ZERO

    for bracket in brackets:
        rate = bracket.rate
        upper = bracket.ceiling if bracket.ceiling is not None else taxable_income
        taxable_in_bracket = min(taxable_income, upper) - lower
        if taxable_in_bracket > 0:
            total_tax += taxable_in_bracket * rate
        if bracket.ceiling is None or taxable_income <= bracket.ceiling:
            return total_tax
        lower = bracket.ceiling

    # Every bracket was finite and exhausted
    return total_tax + (taxable_income - lower) * rate
