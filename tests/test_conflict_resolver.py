"""Tests for shift selection and approval conflict resolution."""

from datetime import date

import pytest

from payslip_engine.scheduling.conflict_resolver import (
    ShiftConflictResolver,
    find_overlap_conflicts,
    validate_shifts_by_date,
    would_conflict,
)
from payslip_engine.scheduling.types import DEFAULT_CONFLICT_NAME, RegistrationStatus

MONDAY = date(2024, 9, 2)
TUESDAY = date(2024, 9, 3)


class TestWouldConflict:
    """Single candidate against a selection."""

    def test_overlap_same_employee_same_day(self, make_registration):
        """Same employee, same day, overlapping clock times."""
        selected = make_registration("r1", start="08:00", end="12:00", shift_name="Morning")
        candidate = make_registration("r2", start="11:00", end="15:00")

        result = would_conflict(candidate, [selected])

        assert result.has_conflict is True
        assert result.conflicting is selected
        assert result.conflict_shift_name == "Morning"

    def test_touching_shifts_allowed(self, make_registration):
        selected = make_registration("r1", start="08:00", end="12:00")
        candidate = make_registration("r2", start="12:00", end="17:00")

        assert would_conflict(candidate, [selected]).has_conflict is False

    def test_other_employee_never_conflicts(self, make_registration):
        selected = make_registration("r1", employee_id="emp-001")
        candidate = make_registration("r2", employee_id="emp-002")

        assert would_conflict(candidate, [selected]).has_conflict is False

    def test_other_date_never_conflicts(self, make_registration):
        selected = make_registration("r1", shift_date=MONDAY)
        candidate = make_registration("r2", shift_date=TUESDAY)

        assert would_conflict(candidate, [selected]).has_conflict is False

    def test_registration_without_times_never_conflicts(self, make_registration):
        """Shifts without clock times cannot be checked and are allowed."""
        selected = make_registration("r1")
        candidate = make_registration("r2", start=None, end=None)

        assert would_conflict(candidate, [selected]).has_conflict is False
        assert would_conflict(selected, [candidate]).has_conflict is False

    def test_default_shift_name(self, make_registration):
        """A conflicting shift without a name gets a generic label."""
        selected = make_registration("r1")
        candidate = make_registration("r2")

        assert would_conflict(candidate, [selected]).conflict_shift_name == DEFAULT_CONFLICT_NAME


class TestToggle:
    """Selecting and deselecting one registration."""

    def test_select_without_conflict(self, make_registration):
        resolver = ShiftConflictResolver([make_registration("r1")])

        result = resolver.toggle("r1", set())

        assert result.selected == frozenset({"r1"})
        assert result.skipped == ()

    def test_select_with_conflict_is_refused(self, make_registration):
        """The selection is unchanged and the skip is reported."""
        resolver = ShiftConflictResolver(
            [
                make_registration("r1", shift_name="Morning", employee_name="An"),
                make_registration("r2", start="10:00", end="14:00", employee_name="An"),
            ]
        )

        result = resolver.toggle("r2", {"r1"})

        assert result.selected == frozenset({"r1"})
        assert result.skipped[0].registration_id == "r2"
        assert result.skipped[0].employee_name == "An"
        assert result.warnings == [("emp-001", "Morning")]

    def test_deselect_always_succeeds(self, make_registration):
        resolver = ShiftConflictResolver([make_registration("r1")])

        assert resolver.toggle("r1", {"r1"}).selected == frozenset()

    def test_unknown_registration(self, make_registration):
        resolver = ShiftConflictResolver([make_registration("r1")])

        with pytest.raises(KeyError):
            resolver.toggle("missing", set())


class TestSelectAllForShift:
    """Bulk selection of one shift group."""

    def test_skips_employees_already_busy(self, make_registration):
        """Employees with an overlapping selection are skipped and reported."""
        registrations = [
            make_registration("busy", employee_id="emp-001", start="07:00", end="09:00",
                              shift_id="early", shift_name="Early"),
            make_registration("m1", employee_id="emp-001", shift_id="morning"),
            make_registration("m2", employee_id="emp-002", shift_id="morning"),
        ]
        resolver = ShiftConflictResolver(registrations)
        group = resolver.shift_group(MONDAY, "morning")

        result = resolver.select_all_for_shift(group, {"busy"}, select=True)

        assert result.selected == frozenset({"busy", "m2"})
        assert [s.registration_id for s in result.skipped] == ["m1"]
        assert result.skipped[0].conflicting_shift_name == "Early"

    def test_conflicts_within_the_group(self, make_registration):
        """Two overlapping entries of one employee in the same group keep the first."""
        registrations = [
            make_registration("a", start="08:00", end="12:00"),
            make_registration("b", start="09:00", end="13:00"),
        ]
        resolver = ShiftConflictResolver(registrations)

        result = resolver.select_all_for_shift(registrations, set(), select=True)

        assert result.selected == frozenset({"a"})
        assert [s.registration_id for s in result.skipped] == ["b"]

    def test_deselect_group(self, make_registration):
        registrations = [
            make_registration("m1", employee_id="emp-001"),
            make_registration("m2", employee_id="emp-002"),
            make_registration("x", employee_id="emp-003", shift_id="evening"),
        ]
        resolver = ShiftConflictResolver(registrations)
        group = resolver.shift_group(MONDAY, "morning")

        result = resolver.select_all_for_shift(group, {"m1", "m2", "x"}, select=False)

        assert result.selected == frozenset({"x"})


class TestConflictMap:
    """Unselected registrations that would collide."""

    def test_conflicting_registrations(self, make_registration):
        resolver = ShiftConflictResolver(
            [
                make_registration("r1", shift_name="Morning"),
                make_registration("r2", start="11:00", end="15:00"),
                make_registration("r3", start="13:00", end="17:00"),
            ]
        )

        conflicts = resolver.conflicting_registrations({"r1"})

        assert set(conflicts) == {"r2"}
        assert conflicts["r2"].conflict_shift_name == "Morning"

    def test_initial_selection_is_approved(self, make_registration):
        resolver = ShiftConflictResolver(
            [
                make_registration("r1", status=RegistrationStatus.APPROVED),
                make_registration("r2", shift_date=TUESDAY),
            ]
        )

        assert resolver.initial_selection() == frozenset({"r1"})


class TestApprovalBatch:
    """Submitting a selection."""

    def test_approve_selected_reject_pending(self, make_registration):
        """Selected pending are approved, unselected pending rejected, decided stay."""
        resolver = ShiftConflictResolver(
            [
                make_registration("sel", employee_id="emp-001"),
                make_registration("unsel", employee_id="emp-002"),
                make_registration("done", employee_id="emp-003", status=RegistrationStatus.APPROVED),
                make_registration("no", employee_id="emp-004", status=RegistrationStatus.REJECTED),
            ]
        )

        batch = resolver.build_approval_batch({"sel", "done"})

        assert batch.approve == ["sel"]
        assert batch.reject == ["unsel"]
        assert sorted(batch.unchanged) == ["done", "no"]
        assert batch.skipped == []
        assert batch.is_empty is False

    def test_overlapping_selection_drops_later_registration(self, make_registration):
        """A selected overlap is dropped, reported and rejected, never raised."""
        resolver = ShiftConflictResolver(
            [
                make_registration("first", shift_name="Morning"),
                make_registration("second", start="10:00", end="14:00"),
            ]
        )

        batch = resolver.build_approval_batch({"first", "second"})

        assert batch.approve == ["first"]
        assert batch.reject == ["second"]
        assert [s.registration_id for s in batch.skipped] == ["second"]
        assert batch.skipped[0].conflicting_shift_name == "Morning"

    def test_deselected_approval_still_blocks_overlap(self, make_registration):
        """Deselecting an approved shift does not free its time slot."""
        resolver = ShiftConflictResolver(
            [
                make_registration("morning", shift_name="Morning", status=RegistrationStatus.APPROVED),
                make_registration("mid", start="10:00", end="14:00", shift_id="mid"),
            ]
        )
        selection = resolver.initial_selection()
        selection = resolver.toggle("morning", selection).selected
        selection = resolver.toggle("mid", selection).selected

        batch = resolver.build_approval_batch(selection)

        assert batch.approve == []
        assert batch.reject == ["mid"]
        assert batch.unchanged == ["morning"]
        assert [s.registration_id for s in batch.skipped] == ["mid"]
        assert batch.skipped[0].conflicting_shift_name == "Morning"

    def test_existing_approval_wins_regardless_of_order(self, make_registration):
        """A pending shift listed before an overlapping approval is the one dropped."""
        resolver = ShiftConflictResolver(
            [
                make_registration("mid", start="10:00", end="14:00", shift_id="mid"),
                make_registration("morning", status=RegistrationStatus.APPROVED),
            ]
        )

        batch = resolver.build_approval_batch({"mid", "morning"})

        assert batch.approve == []
        assert batch.reject == ["mid"]
        assert batch.unchanged == ["morning"]
        assert [s.registration_id for s in batch.skipped] == ["mid"]

    def test_final_approved_set_has_no_overlap(self, make_registration):
        regs = [
            make_registration("early", start="06:00", end="09:00", shift_id="early"),
            make_registration("morning", status=RegistrationStatus.APPROVED),
            make_registration("late", start="12:00", end="16:00", shift_id="late"),
        ]
        resolver = ShiftConflictResolver(regs)

        batch = resolver.build_approval_batch({"early", "late"})

        approved = [r for r in regs if r.id in batch.approve or r.id in batch.unchanged]
        assert find_overlap_conflicts(approved) == []
        assert batch.approve == ["late"]
        assert batch.reject == ["early"]

    def test_unknown_ids(self, make_registration):
        resolver = ShiftConflictResolver([make_registration("r1")])

        with pytest.raises(KeyError):
            resolver.build_approval_batch({"r1", "ghost"})


class TestBulkValidation:
    """Validating many registrations of one employee at once."""

    def test_find_overlap_conflicts(self, make_registration):
        regs = [
            make_registration("a", start="08:00", end="12:00"),
            make_registration("b", start="11:00", end="13:00"),
            make_registration("c", start="13:00", end="17:00"),
        ]

        conflicts = find_overlap_conflicts(regs)

        assert len(conflicts) == 1
        assert (conflicts[0].first.id, conflicts[0].second.id) == ("a", "b")
        assert str(conflicts[0].overlap) == "11:00-12:00"

    def test_validate_by_date(self, make_registration):
        """Only dates with overlaps are reported."""
        regs = [
            make_registration("a", shift_date=MONDAY, start="08:00", end="12:00"),
            make_registration("b", shift_date=MONDAY, start="09:00", end="10:00"),
            make_registration("c", shift_date=TUESDAY, start="08:00", end="12:00"),
            make_registration("d", shift_date=TUESDAY, start="12:00", end="16:00"),
        ]

        errors = validate_shifts_by_date(regs)

        assert list(errors) == [MONDAY]
        assert len(errors[MONDAY]) == 1
