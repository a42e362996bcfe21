"""Type definitions for the payslip calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

ZERO = Decimal("0")


class PayType(str, Enum):
    """How an employee's contract pays them."""

    MONTHLY = "monthly"
    HOURLY = "hourly"


class LineCategory(str, Enum):
    """Payslip line categories."""

    EARNING = "EARNING"
    ALLOWANCE = "ALLOWANCE"
    BONUS = "BONUS"
    PENALTY = "PENALTY"
    INSURANCE = "INSURANCE"
    TAX = "TAX"


class EditStatus(str, Enum):
    """Outcome of a manual edit."""

    APPLIED = "applied"
    LOCKED = "locked"


class MissingContractTermsError(Exception):
    """Raised when an employee cannot be paid from the terms supplied."""

    def __init__(self, employee_id: str, reason: str = "no contract terms"):
        self.employee_id = employee_id
        self.reason = reason
        super().__init__(f"Missing contract terms for employee {employee_id}: {reason}")


@dataclass(frozen=True)
class MonthlyAggregate:
    """Attendance and leave totals for one employee in one month."""

    employee_id: str
    month: str  # YYYY-MM
    actual_work_days: Decimal = ZERO
    paid_leave_days: Decimal = ZERO
    unpaid_leave_days: Decimal = ZERO
    total_hours_worked: Decimal = ZERO
    overtime_hours: Decimal = ZERO


@dataclass(frozen=True)
class EmployeeContractTerms:
    """Contract terms supplied by the employee directory."""

    pay_type: PayType
    base_salary_or_hourly_rate: Decimal | None
    lunch_allowance_per_day: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    phone_allowance: Decimal = ZERO
    other_allowance: Decimal = ZERO
    kpi_target: Decimal = ZERO
    kpi_percent: Decimal = Decimal("100")
    has_insurance: bool = True
    dependents_count: int = 0
    branch_id: str | None = None

    @property
    def is_monthly(self) -> bool:
        return self.pay_type == PayType.MONTHLY


@dataclass(frozen=True)
class ClampEvent:
    """A derived term that came out negative and was clamped to zero."""

    term: str
    raw_value: Decimal


@dataclass(frozen=True)
class DeductionResult:
    """Statutory deductions for one gross figure."""

    insurance_deduction: Decimal
    taxable_income: Decimal
    pit_deduction: Decimal
    clamps: tuple[ClampEvent, ...] = ()

    @property
    def total(self) -> Decimal:
        return self.insurance_deduction + self.pit_deduction

    @property
    def was_clamped(self) -> bool:
        return len(self.clamps) > 0


@dataclass
class PayslipRow:
    """One employee's payslip for one month.

    Rows are treated as values: the engine and the locking service return
    new rows and never mutate the ones they are given.
    """

    employee_id: str
    month: str
    branch_id: str | None = None
    pay_type: PayType = PayType.MONTHLY

    # Attendance
    work_days: Decimal = ZERO
    actual_work_days: Decimal = ZERO
    paid_leave_days: Decimal = ZERO
    ot_hours: Decimal = ZERO

    # Income side
    base_salary: Decimal = ZERO
    lunch_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    phone_allowance: Decimal = ZERO
    other_allowance: Decimal = ZERO
    kpi_bonus: Decimal = ZERO
    ot_pay: Decimal = ZERO
    bonus: Decimal = ZERO
    penalty: Decimal = ZERO

    # Rates retained for re-derivation after manual edits
    lunch_allowance_rate: Decimal = ZERO
    ot_hourly_rate: Decimal = ZERO
    ot_multiplier: Decimal = Decimal("1")
    insurance_base: Decimal = ZERO
    has_insurance: bool = True
    dependents_count: int = 0

    # Derived
    gross_salary: Decimal = ZERO
    insurance_deduction: Decimal = ZERO
    taxable_income: Decimal = ZERO
    pit_deduction: Decimal = ZERO
    net_salary: Decimal = ZERO

    # Lifecycle
    is_finalized: bool = False
    finalized_at: datetime | None = None
    finalized_by: str | None = None
    reopened_at: datetime | None = None
    reopened_by: str | None = None
    reopen_reason: str | None = None

    # Audit
    calculation_id: str | None = None
    config_fingerprint: str | None = None

    @property
    def key(self) -> tuple[str, str | None]:
        """The (month, branch) key finalization batches share."""
        return (self.month, self.branch_id)

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dict of every field."""
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class EditResult:
    """Result of a manual edit on a payslip row."""

    row: PayslipRow
    status: EditStatus
    field: str

    @property
    def applied(self) -> bool:
        return self.status == EditStatus.APPLIED

    @property
    def locked(self) -> bool:
        return self.status == EditStatus.LOCKED


@dataclass(frozen=True)
class SkippedEmployee:
    """An employee left out of a batch, with the reason shown to the operator."""

    employee_id: str
    reason: str


@dataclass
class BatchGenerationResult:
    """Result of generating payslips for a whole month/branch."""

    month: str
    config_fingerprint: str
    rows: list[PayslipRow] = field(default_factory=list)
    skipped: list[SkippedEmployee] = field(default_factory=list)
    total_gross: Decimal = ZERO
    total_net: Decimal = ZERO

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)
