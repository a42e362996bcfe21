"""Property-based tests for payroll and scheduling invariants.

These use hypothesis to generate wide ranges of amounts and clock times and
check that the invariants hold for every input, not just the worked
examples.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, time
from decimal import Decimal

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from payslip_engine.calculators.engine import EDITABLE_FIELDS, PayrollEngine
from payslip_engine.calculators.payroll_config import VN_PIT_BRACKETS, PayrollConfig
from payslip_engine.calculators.tax_calculator import TaxCalculator, calculate_progressive_tax
from payslip_engine.calculators.types import (
    EditStatus,
    EmployeeContractTerms,
    MonthlyAggregate,
    PayType,
)
from payslip_engine.scheduling.conflict_resolver import ShiftConflictResolver, find_overlap_conflicts
from payslip_engine.scheduling.intervals import ShiftInterval, overlap_range, overlaps
from payslip_engine.scheduling.types import RegistrationStatus, ShiftRegistration

money = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("500000000"),
    places=0,
    allow_nan=False,
    allow_infinity=False,
)
days = st.decimals(min_value=Decimal("0"), max_value=Decimal("31"), places=1)
# Leaves room for an end minute before midnight
start_minutes = st.integers(min_value=0, max_value=24 * 60 - 2)


def clock(minute: int) -> time:
    return time(minute // 60, minute % 60)


@st.composite
def intervals(draw) -> ShiftInterval:
    start = draw(start_minutes)
    end = draw(st.integers(min_value=start + 1, max_value=24 * 60 - 1))
    return ShiftInterval(clock(start), clock(end))


class TestIntervalInvariants:
    """Overlap is symmetric and half-open."""

    @given(a=intervals(), b=intervals())
    @settings(max_examples=200)
    def test_overlap_is_symmetric(self, a: ShiftInterval, b: ShiftInterval):
        assert overlaps(a, b) == overlaps(b, a)

    @given(a=intervals(), b=intervals())
    @settings(max_examples=200)
    def test_overlap_range_inside_both(self, a: ShiftInterval, b: ShiftInterval):
        """The shared range lies within both intervals."""
        shared = overlap_range(a, b)
        assume(shared is not None)
        assert a.start_time <= shared.start_time and shared.end_time <= a.end_time
        assert b.start_time <= shared.start_time and shared.end_time <= b.end_time

    @given(a=intervals())
    @settings(max_examples=100)
    def test_adjacent_interval_never_overlaps(self, a: ShiftInterval):
        """An interval starting where another ends is always allowed."""
        assume(a.end_time < time(23, 59))
        follower = ShiftInterval(a.end_time, time.max)
        assert overlaps(a, follower) is False


class TestApprovalInvariants:
    """Submitting any selection never double-books an employee."""

    @given(shifts=st.lists(st.tuples(intervals(), st.booleans(), st.booleans()), max_size=6))
    @settings(max_examples=200)
    def test_final_approved_set_has_no_overlap(self, shifts):
        regs: list[ShiftRegistration] = []
        existing: list[ShiftRegistration] = []
        for i, (interval, approved, _) in enumerate(shifts):
            # Existing approvals never overlap each other
            if approved and not any(overlaps(interval, r.interval) for r in existing):
                status = RegistrationStatus.APPROVED
            else:
                status = RegistrationStatus.PENDING
            reg = ShiftRegistration(
                id=f"r{i}",
                employee_id="emp-001",
                shift_date=date(2024, 9, 2),
                shift_id=f"s{i}",
                interval=interval,
                status=status,
            )
            regs.append(reg)
            if status == RegistrationStatus.APPROVED:
                existing.append(reg)
        selection = {f"r{i}" for i, (_, _, selected) in enumerate(shifts) if selected}

        batch = ShiftConflictResolver(regs).build_approval_batch(selection)

        final = [r for r in regs if r.id in batch.approve] + existing
        assert find_overlap_conflicts(final) == []
        assert not {s.registration_id for s in batch.skipped} & {r.id for r in existing}


class TestDeductionInvariants:
    """Deductions never go negative."""

    @given(
        gross=money,
        insurance_base=money,
        dependents=st.integers(min_value=0, max_value=10),
        has_insurance=st.booleans(),
    )
    @settings(max_examples=200)
    def test_terms_are_non_negative(self, gross, insurance_base, dependents, has_insurance):
        result = TaxCalculator(PayrollConfig()).compute_deductions(
            gross,
            insurance_base,
            has_insurance=has_insurance,
            dependents_count=dependents,
        )

        assert result.insurance_deduction >= 0
        assert result.taxable_income >= 0
        assert result.pit_deduction >= 0

    @given(low=money, high=money)
    @settings(max_examples=200)
    def test_marginal_tax_is_monotonic(self, low: Decimal, high: Decimal):
        """More taxable income never means less tax."""
        low, high = min(low, high), max(low, high)
        assert calculate_progressive_tax(low, VN_PIT_BRACKETS) <= calculate_progressive_tax(
            high, VN_PIT_BRACKETS
        )

    @given(income=money)
    @settings(max_examples=200)
    def test_tax_bounded_by_top_rate(self, income: Decimal):
        """Marginal tax never exceeds income times the highest rate."""
        top_rate = max(b.rate for b in VN_PIT_BRACKETS)
        assert calculate_progressive_tax(income, VN_PIT_BRACKETS) <= income * top_rate


class TestEngineInvariants:
    """Generation and editing."""

    @given(salary=money.filter(lambda v: v > 0), worked=days, unpaid=days, ot=days)
    @settings(max_examples=100)
    def test_generation_is_deterministic(self, salary, worked, unpaid, ot):
        """The same inputs always give the same row and calculation id."""
        terms = EmployeeContractTerms(
            pay_type=PayType.MONTHLY,
            base_salary_or_hourly_rate=salary,
            lunch_allowance_per_day=Decimal("30000"),
        )
        aggregate = MonthlyAggregate(
            employee_id="emp-001",
            month="2024-09",
            actual_work_days=worked,
            unpaid_leave_days=unpaid,
            overtime_hours=ot,
        )

        first = PayrollEngine(PayrollConfig()).generate(aggregate, terms)
        second = PayrollEngine(PayrollConfig()).generate(aggregate, terms)

        assert first == second
        assert first.base_salary >= 0
        assert first.net_salary == (
            first.gross_salary - first.insurance_deduction - first.pit_deduction
        )

    @given(field=st.sampled_from(sorted(EDITABLE_FIELDS)), value=money)
    @settings(max_examples=100)
    def test_finalized_rows_never_change(self, field: str, value: Decimal):
        engine = PayrollEngine(PayrollConfig())
        terms = EmployeeContractTerms(
            pay_type=PayType.MONTHLY, base_salary_or_hourly_rate=Decimal("10000000")
        )
        row = engine.generate(
            MonthlyAggregate(employee_id="emp-001", month="2024-09", actual_work_days=Decimal("22")),
            terms,
        )
        finalized = replace(row, is_finalized=True)

        result = engine.apply_edit(finalized, field, value)

        assert result.status == EditStatus.LOCKED
        assert result.row == finalized

    @given(value=money)
    @settings(max_examples=100)
    def test_edit_equals_recalculation(self, value: Decimal):
        """Editing a bonus matches recalculating a row that already had it."""
        engine = PayrollEngine(PayrollConfig())
        terms = EmployeeContractTerms(
            pay_type=PayType.MONTHLY, base_salary_or_hourly_rate=Decimal("10000000")
        )
        row = engine.generate(
            MonthlyAggregate(employee_id="emp-001", month="2024-09", actual_work_days=Decimal("22")),
            terms,
        )

        edited = engine.apply_edit(row, "bonus", value).row

        assert edited == engine.recalculate(replace(row, bonus=value))
