"""Monthly salary and system configuration models."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payslip_engine.calculators.types import PayslipRow, PayType
from payslip_engine.models.base import Base, TimestampMixin


class MonthlySalary(Base, TimestampMixin):
    """Persisted payslip row for one employee and month."""

    __tablename__ = "monthly_salaries"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    branch_id: Mapped[str | None] = mapped_column(String, nullable=True)
    pay_type: Mapped[str] = mapped_column(String, nullable=False, default=PayType.MONTHLY.value)

    # Attendance
    work_days: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=0)
    actual_work_days: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=0)
    paid_leave_days: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=0)
    ot_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=0)

    # Income
    base_salary: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    lunch_allowance: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    transport_allowance: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    phone_allowance: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    other_allowance: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    kpi_bonus: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    ot_pay: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    bonus: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    penalty: Mapped[Decimal] = mapped_column(nullable=False, default=0)

    # Rates kept for re-derivation
    lunch_allowance_rate: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False, default=0)
    ot_hourly_rate: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False, default=0)
    ot_multiplier: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False, default=1)
    insurance_base: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    has_insurance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    dependents_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Derived
    gross_salary: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    insurance_deduction: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    taxable_income: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    pit_deduction: Mapped[Decimal] = mapped_column(nullable=False, default=0)
    net_salary: Mapped[Decimal] = mapped_column(nullable=False, default=0)

    # Lifecycle
    is_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    finalized_at: Mapped[datetime | None] = mapped_column(nullable=True)
    finalized_by: Mapped[str | None] = mapped_column(String, nullable=True)
    reopened_at: Mapped[datetime | None] = mapped_column(nullable=True)
    reopened_by: Mapped[str | None] = mapped_column(String, nullable=True)
    reopen_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Audit
    calculation_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    config_fingerprint: Mapped[str | None] = mapped_column(String(32), nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="uq_monthly_salaries_employee_month"),
        CheckConstraint("pay_type IN ('monthly', 'hourly')", name="pay_type"),
        CheckConstraint(
            "NOT is_finalized OR finalized_at IS NOT NULL",
            name="finalized_stamp",
        ),
    )

    def to_row(self) -> PayslipRow:
        """Convert to the engine's row value.

        SQLite hands timestamps back naive; they were written in UTC.
        """
        data = self.to_dict()
        values: dict[str, Any] = {name: data[name] for name in PAYSLIP_COLUMNS}
        values["pay_type"] = PayType(values["pay_type"])
        for name in ("finalized_at", "reopened_at"):
            values[name] = _as_utc(values[name])
        return PayslipRow(**values)

    @classmethod
    def values_from_row(cls, row: PayslipRow) -> dict[str, Any]:
        """Column values for a row, as used by inserts and updates."""
        values = {name: getattr(row, name) for name in PAYSLIP_COLUMNS}
        values["pay_type"] = row.pay_type.value
        for name in ("finalized_at", "reopened_at"):
            if values[name] is not None and values[name].tzinfo is not None:
                values[name] = values[name].astimezone(timezone.utc)
        return values


# Every PayslipRow field is stored in a column of the same name
PAYSLIP_COLUMNS: tuple[str, ...] = tuple(PayslipRow.__dataclass_fields__)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SystemConfig(Base, TimestampMixin):
    """Key-value business configuration, grouped by module."""

    __tablename__ = "system_configs"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    group: Mapped[str] = mapped_column(String, nullable=False, index=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
