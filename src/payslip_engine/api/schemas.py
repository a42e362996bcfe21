"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from payslip_engine.calculators.types import (
    EditStatus,
    EmployeeContractTerms,
    LineCategory,
    MonthlyAggregate,
    PayslipRow,
    PayType,
)
from payslip_engine.calculators.work_calendar import Holiday
from payslip_engine.scheduling.intervals import ShiftInterval, parse_time
from payslip_engine.scheduling.types import RegistrationStatus, ShiftRegistration

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


# ============================================================================
# Payslip inputs
# ============================================================================


class MonthlyAggregateIn(BaseModel):
    """Attendance totals for one employee month."""

    employee_id: str = Field(min_length=1)
    month: str = Field(pattern=MONTH_PATTERN)
    actual_work_days: Decimal = Field(default=Decimal("0"), ge=0)
    paid_leave_days: Decimal = Field(default=Decimal("0"), ge=0)
    unpaid_leave_days: Decimal = Field(default=Decimal("0"), ge=0)
    total_hours_worked: Decimal = Field(default=Decimal("0"), ge=0)
    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)

    def to_domain(self) -> MonthlyAggregate:
        return MonthlyAggregate(**self.model_dump())


class ContractTermsIn(BaseModel):
    """Contract terms from the employee directory."""

    pay_type: PayType
    base_salary_or_hourly_rate: Decimal | None = None
    lunch_allowance_per_day: Decimal = Field(default=Decimal("0"), ge=0)
    transport_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    phone_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    other_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    kpi_target: Decimal = Field(default=Decimal("0"), ge=0)
    kpi_percent: Decimal = Field(default=Decimal("100"), ge=0)
    has_insurance: bool = True
    dependents_count: int = Field(default=0, ge=0)
    branch_id: str | None = None

    def to_domain(self) -> EmployeeContractTerms:
        return EmployeeContractTerms(**self.model_dump())


class GenerateItem(BaseModel):
    """One employee to generate; terms may be missing."""

    aggregate: MonthlyAggregateIn
    terms: ContractTermsIn | None = None


class HolidayIn(BaseModel):
    """Holiday used to count standard working days."""

    day: date
    name: str = ""
    is_recurring: bool = False

    def to_domain(self) -> Holiday:
        return Holiday(day=self.day, name=self.name, is_recurring=self.is_recurring)


class GenerateRequest(BaseModel):
    """Request to generate draft payslips for a month."""

    month: str = Field(pattern=MONTH_PATTERN)
    items: list[GenerateItem]
    use_calendar: bool = False
    holidays: list[HolidayIn] = Field(default_factory=list)


# ============================================================================
# Payslip rows
# ============================================================================


class PayslipRowSchema(BaseModel):
    """A payslip row as exchanged with clients."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    month: str = Field(pattern=MONTH_PATTERN)
    branch_id: str | None = None
    pay_type: PayType = PayType.MONTHLY

    work_days: Decimal = Decimal("0")
    actual_work_days: Decimal = Decimal("0")
    paid_leave_days: Decimal = Decimal("0")
    ot_hours: Decimal = Decimal("0")

    base_salary: Decimal = Decimal("0")
    lunch_allowance: Decimal = Decimal("0")
    transport_allowance: Decimal = Decimal("0")
    phone_allowance: Decimal = Decimal("0")
    other_allowance: Decimal = Decimal("0")
    kpi_bonus: Decimal = Decimal("0")
    ot_pay: Decimal = Decimal("0")
    bonus: Decimal = Decimal("0")
    penalty: Decimal = Decimal("0")

    lunch_allowance_rate: Decimal = Decimal("0")
    ot_hourly_rate: Decimal = Decimal("0")
    ot_multiplier: Decimal = Decimal("1")
    insurance_base: Decimal = Decimal("0")
    has_insurance: bool = True
    dependents_count: int = 0

    gross_salary: Decimal = Decimal("0")
    insurance_deduction: Decimal = Decimal("0")
    taxable_income: Decimal = Decimal("0")
    pit_deduction: Decimal = Decimal("0")
    net_salary: Decimal = Decimal("0")

    is_finalized: bool = False
    finalized_at: datetime | None = None
    finalized_by: str | None = None
    reopened_at: datetime | None = None
    reopened_by: str | None = None
    reopen_reason: str | None = None

    calculation_id: str | None = None
    config_fingerprint: str | None = None

    def to_domain(self) -> PayslipRow:
        return PayslipRow(**self.model_dump())


class SkippedEmployeeSchema(BaseModel):
    """Employee left out of generation."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    reason: str


class GenerateResponse(BaseModel):
    """Draft rows for a month plus the employees that were skipped."""

    model_config = ConfigDict(from_attributes=True)

    month: str
    config_fingerprint: str
    rows: list[PayslipRowSchema]
    skipped: list[SkippedEmployeeSchema]
    total_gross: Decimal
    total_net: Decimal


class EditRequest(BaseModel):
    """Manual correction of one field on a draft row."""

    row: PayslipRowSchema
    field: str
    value: Decimal


class EditResponse(BaseModel):
    """Edited row, or the untouched row when it is locked."""

    row: PayslipRowSchema
    status: EditStatus
    field: str


class PayslipLinesRequest(BaseModel):
    """Row to itemize."""

    row: PayslipRowSchema
    include_zero: bool = False


class PayslipLineSchema(BaseModel):
    """One signed payslip line; ``line_hash`` ignores the explanation."""

    code: str
    category: LineCategory
    amount: Decimal
    quantity: Decimal | None = None
    rate: Decimal | None = None
    explanation: str | None = None
    line_hash: str


class PayslipLinesResponse(BaseModel):
    """Itemized view of one row; the lines sum to ``net_salary``."""

    employee_id: str
    month: str
    lines: list[PayslipLineSchema]
    totals_by_category: dict[LineCategory, Decimal]
    gross_salary: Decimal
    net_salary: Decimal


class SavePayslipsRequest(BaseModel):
    """Draft rows to persist."""

    rows: list[PayslipRowSchema] = Field(min_length=1)


class SavePayslipsResponse(BaseModel):
    """Number of rows written."""

    written: int


class PayslipListResponse(BaseModel):
    """Stored rows of a month."""

    month: str
    branch_id: str | None
    rows: list[PayslipRowSchema]
    total_gross: Decimal
    total_net: Decimal


class FinalizeRequest(BaseModel):
    """Finalize every row of one month and branch."""

    month: str = Field(pattern=MONTH_PATTERN)
    branch_id: str | None = None
    actor_id: str = Field(min_length=1)


class UnfinalizeRequest(FinalizeRequest):
    """Re-open a finalized month and branch."""

    reason: str | None = None


class FinalizeResponse(BaseModel):
    """Outcome of a finalize or re-open."""

    month: str
    branch_id: str | None
    status: str
    actor_id: str
    at: datetime
    reason: str | None = None
    employee_ids: list[str]


# ============================================================================
# Shift registrations
# ============================================================================


class ShiftRegistrationIn(BaseModel):
    """A shift registration as shown on the approval screen."""

    id: str
    employee_id: str
    shift_date: date
    shift_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    status: RegistrationStatus = RegistrationStatus.PENDING
    registered_at: datetime | None = None
    shift_name: str | None = None
    employee_name: str | None = None
    branch_id: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_clock(cls, value: str | None) -> str | None:
        if value is not None:
            parse_time(value)
        return value

    def to_domain(self) -> ShiftRegistration:
        interval = None
        if self.start_time and self.end_time:
            interval = ShiftInterval.parse(self.start_time, self.end_time)
        return ShiftRegistration(
            id=self.id,
            employee_id=self.employee_id,
            shift_date=self.shift_date,
            shift_id=self.shift_id,
            interval=interval,
            status=self.status,
            registered_at=self.registered_at,
            shift_name=self.shift_name,
            employee_name=self.employee_name,
            branch_id=self.branch_id,
        )


class SelectionRequest(BaseModel):
    """Registrations on screen plus the manager's current selection."""

    registrations: list[ShiftRegistrationIn]
    selection: list[str] = Field(default_factory=list)


class ToggleRequest(SelectionRequest):
    registration_id: str


class SelectAllRequest(SelectionRequest):
    shift_date: date
    shift_id: str | None = None
    select: bool = True


class SkippedRegistrationSchema(BaseModel):
    """Registration left out because of an overlap."""

    model_config = ConfigDict(from_attributes=True)

    registration_id: str
    employee_id: str
    employee_name: str
    conflicting_shift_name: str


class SelectionResponse(BaseModel):
    """Updated selection and any registrations skipped."""

    selected: list[str]
    skipped: list[SkippedRegistrationSchema]


class ConflictMapResponse(BaseModel):
    """Unselected registration id to the selected shift it collides with."""

    conflicts: dict[str, str]


class OverlapSchema(BaseModel):
    first_id: str
    second_id: str
    employee_id: str
    overlap: str


class ValidateRegistrationsResponse(BaseModel):
    """Overlapping registrations grouped by date."""

    valid: bool
    conflicts: dict[date, list[OverlapSchema]]


class ApprovalBatchResponse(BaseModel):
    """Status decisions for a submitted selection."""

    approve: list[str]
    reject: list[str]
    unchanged: list[str]
    skipped: list[SkippedRegistrationSchema]
