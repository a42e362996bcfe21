"""Pytest fixtures for payslip engine tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from payslip_engine.calculators.engine import PayrollEngine
from payslip_engine.calculators.payroll_config import PayrollConfig, TaxBracket
from payslip_engine.calculators.types import (
    EmployeeContractTerms,
    MonthlyAggregate,
    PayType,
)
from payslip_engine.scheduling.intervals import ShiftInterval
from payslip_engine.scheduling.types import RegistrationStatus, ShiftRegistration

MONTH = "2024-09"

# Four-bracket schedule used in worked examples
_SIMPLE_BRACKETS = (
    TaxBracket(ceiling=Decimal("5000000"), rate=Decimal("0.05")),
    TaxBracket(ceiling=Decimal("10000000"), rate=Decimal("0.10")),
    TaxBracket(ceiling=Decimal("18000000"), rate=Decimal("0.15")),
    TaxBracket(ceiling=None, rate=Decimal("0.20")),
)


@pytest.fixture
def config() -> PayrollConfig:
    """Default payroll configuration."""
    return PayrollConfig()


@pytest.fixture
def engine(config: PayrollConfig) -> PayrollEngine:
    return PayrollEngine(config)


@pytest.fixture
def monthly_terms() -> EmployeeContractTerms:
    """10M monthly salary with lunch, transport and phone allowances."""
    return EmployeeContractTerms(
        pay_type=PayType.MONTHLY,
        base_salary_or_hourly_rate=Decimal("10000000"),
        lunch_allowance_per_day=Decimal("30000"),
        transport_allowance=Decimal("500000"),
        phone_allowance=Decimal("200000"),
        branch_id="hcm-1",
    )


@pytest.fixture
def hourly_terms() -> EmployeeContractTerms:
    return EmployeeContractTerms(
        pay_type=PayType.HOURLY,
        base_salary_or_hourly_rate=Decimal("50000"),
        branch_id="hcm-1",
    )


@pytest.fixture
def aggregate() -> MonthlyAggregate:
    """22 worked days, no leave, no overtime."""
    return MonthlyAggregate(
        employee_id="emp-001",
        month=MONTH,
        actual_work_days=Decimal("22"),
    )


@pytest.fixture
def simple_brackets() -> tuple[TaxBracket, ...]:
    return _SIMPLE_BRACKETS


@pytest.fixture
def make_registration():
    """Factory for shift registrations."""
    return _make_registration


def _make_registration(
    reg_id: str,
    employee_id: str = "emp-001",
    start: str | None = "08:00",
    end: str | None = "12:00",
    shift_date: date = date(2024, 9, 2),
    shift_id: str | None = "morning",
    status: RegistrationStatus = RegistrationStatus.PENDING,
    shift_name: str | None = None,
    employee_name: str | None = None,
) -> ShiftRegistration:
    """Build a registration; pass start=None for a shift without clock times."""
    interval = ShiftInterval.parse(start, end) if start and end else None
    return ShiftRegistration(
        id=reg_id,
        employee_id=employee_id,
        shift_date=shift_date,
        shift_id=shift_id,
        interval=interval,
        status=status,
        shift_name=shift_name,
        employee_name=employee_name,
    )
