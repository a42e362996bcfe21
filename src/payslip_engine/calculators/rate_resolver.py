"""Pay rate resolution for monthly and hourly contracts."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payslip_engine.calculators.payroll_config import PayrollConfig
from payslip_engine.calculators.types import (
    ZERO,
    EmployeeContractTerms,
    MissingContractTermsError,
    MonthlyAggregate,
)


@dataclass(frozen=True)
class ResolvedPay:
    """Base pay and the rates behind it, before rounding."""

    base_pay: Decimal
    daily_rate: Decimal | None  # Monthly contracts only
    ot_hourly_rate: Decimal
    insurance_base: Decimal
    unpaid_leave_deduction: Decimal = ZERO


class RateResolver:
    """Resolves base pay, daily rate and overtime rate from contract terms.

    Monthly staff are paid the contract salary minus unpaid leave at
    ``salary / standard_work_days`` per day. Worked-day counts and paid leave
    never reduce it.

    Hourly staff are paid ``rate * hours``. A missing or non-positive rate is
    a data problem and raises MissingContractTermsError; no default rate is
    ever substituted.
    """

    def __init__(self, config: PayrollConfig):
        self.config = config

    def resolve(
        self, aggregate: MonthlyAggregate, terms: EmployeeContractTerms | None
    ) -> ResolvedPay:
        """Resolve pay for one employee month."""
        amount = self.require_rate(aggregate.employee_id, terms)

        if terms.is_monthly:
            daily_rate = self.daily_rate(amount)
            unpaid = daily_rate * max(aggregate.unpaid_leave_days, ZERO)
            return ResolvedPay(
                base_pay=amount - unpaid,
                daily_rate=daily_rate,
                ot_hourly_rate=daily_rate / self.config.hours_per_day,
                insurance_base=amount,
                unpaid_leave_deduction=unpaid,
            )

        base_pay = amount * aggregate.total_hours_worked
        return ResolvedPay(
            base_pay=base_pay,
            daily_rate=None,
            ot_hourly_rate=amount,
            insurance_base=base_pay,
        )

    def daily_rate(self, monthly_salary: Decimal) -> Decimal:
        """Daily rate of a monthly salary."""
        return monthly_salary / self.config.standard_work_days_per_month

    @staticmethod
    def require_rate(
        employee_id: str, terms: EmployeeContractTerms | None
    ) -> Decimal:
        """Return the contract amount or raise if it cannot be used."""
        if terms is None:
            raise MissingContractTermsError(employee_id)

        amount = terms.base_salary_or_hourly_rate
        label = "monthly salary" if terms.is_monthly else "hourly rate"
        if amount is None:
            raise MissingContractTermsError(employee_id, f"no {label} on contract")
        if amount <= 0:
            raise MissingContractTermsError(
                employee_id, f"{label} must be positive, got {amount}"
            )
        return amount
