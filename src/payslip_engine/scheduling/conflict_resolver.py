"""Shift conflict resolution for registration approval.

A manager approving a week of shift registrations must never place one
employee in two overlapping shifts on the same date. Conflicts are never
fatal: they only keep the offending registration out of the selection, and
every operation returns a decision value the caller can show.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable, Sequence

from payslip_engine.scheduling.intervals import overlap_range, overlaps
from payslip_engine.scheduling.types import (
    NO_CONFLICT,
    ApprovalBatch,
    ConflictResult,
    OverlapConflict,
    RegistrationStatus,
    SelectionResult,
    ShiftRegistration,
    SkippedRegistration,
)
from payslip_engine.services.state_machine import RegistrationStateMachine

logger = logging.getLogger(__name__)


def would_conflict(
    candidate: ShiftRegistration, already_selected: Iterable[ShiftRegistration]
) -> ConflictResult:
    """First selected registration of the same employee and date that overlaps."""
    if candidate.interval is None:
        return NO_CONFLICT

    for other in already_selected:
        if not candidate.same_slot_owner(other) or other.interval is None:
            continue
        if overlaps(candidate.interval, other.interval):
            return ConflictResult(conflicting=other)
    return NO_CONFLICT


def find_overlap_conflicts(
    registrations: Sequence[ShiftRegistration],
) -> list[OverlapConflict]:
    """Every overlapping pair among one employee's same-day registrations."""
    conflicts: list[OverlapConflict] = []
    for i, first in enumerate(registrations):
        for second in registrations[i + 1 :]:
            if not first.same_slot_owner(second):
                continue
            if first.interval is None or second.interval is None:
                continue
            shared = overlap_range(first.interval, second.interval)
            if shared is not None:
                conflicts.append(OverlapConflict(first=first, second=second, overlap=shared))
    return conflicts


def validate_shifts_by_date(
    registrations: Iterable[ShiftRegistration],
) -> dict[date, list[OverlapConflict]]:
    """Group registrations by date and report overlaps within each date.

    Used when an employee registers for many shifts at once.
    """
    by_date: dict[date, list[ShiftRegistration]] = defaultdict(list)
    for reg in registrations:
        by_date[reg.shift_date].append(reg)

    errors: dict[date, list[OverlapConflict]] = {}
    for shift_date, regs in sorted(by_date.items()):
        conflicts = find_overlap_conflicts(regs)
        if conflicts:
            errors[shift_date] = conflicts
    return errors


class ShiftConflictResolver:
    """Selection logic for one approval screen (one branch, one week).

    ``registrations`` is the ordered list the manager sees; selections are
    sets of registration ids and are never mutated in place.
    """

    def __init__(self, registrations: Sequence[ShiftRegistration]):
        self.registrations = list(registrations)
        self._by_id = {r.id: r for r in self.registrations}

    def get(self, registration_id: str) -> ShiftRegistration | None:
        return self._by_id.get(registration_id)

    def initial_selection(self) -> frozenset[str]:
        """Already approved registrations start out selected."""
        return frozenset(
            r.id for r in self.registrations if r.status == RegistrationStatus.APPROVED
        )

    def selected_registrations(self, selection: Iterable[str]) -> list[ShiftRegistration]:
        return [self._by_id[i] for i in selection if i in self._by_id]

    def would_conflict(
        self, candidate: ShiftRegistration, selection: Iterable[str]
    ) -> ConflictResult:
        """Check a candidate against the registrations in ``selection``."""
        return would_conflict(candidate, self.selected_registrations(selection))

    def toggle(self, registration_id: str, selection: Iterable[str]) -> SelectionResult:
        """Select or deselect one registration.

        Deselecting always succeeds; selecting is refused on overlap.
        """
        current = frozenset(selection)
        if registration_id in current:
            return SelectionResult(selected=current - {registration_id})

        reg = self._by_id.get(registration_id)
        if reg is None:
            raise KeyError(f"Unknown registration {registration_id}")

        conflict = self.would_conflict(reg, current)
        if conflict.has_conflict:
            skipped = SkippedRegistration.of(reg, conflict)
            logger.info(
                "Not selecting registration %s: %s already selected for %s",
                reg.id,
                reg.display_name,
                skipped.conflicting_shift_name,
            )
            return SelectionResult(selected=current, skipped=(skipped,))

        return SelectionResult(selected=current | {registration_id})

    def shift_group(self, shift_date: date, shift_id: str | None) -> list[ShiftRegistration]:
        """Registrations for one shift on one date, in display order."""
        return [
            r for r in self.registrations if r.shift_date == shift_date and r.shift_id == shift_id
        ]

    def select_all_for_shift(
        self,
        group: Iterable[ShiftRegistration],
        selection: Iterable[str],
        select: bool,
    ) -> SelectionResult:
        """Bulk select or deselect a shift group.

        Selecting adds each registration in order, skipping (and reporting)
        any whose employee already has an overlapping selection that day,
        including ones added earlier in the same pass.
        """
        new_selected = set(selection)
        group = list(group)

        if not select:
            for reg in group:
                new_selected.discard(reg.id)
            return SelectionResult(selected=frozenset(new_selected))

        skipped: list[SkippedRegistration] = []
        for reg in group:
            if reg.id in new_selected:
                continue
            conflict = self.would_conflict(reg, new_selected)
            if conflict.has_conflict:
                skipped.append(SkippedRegistration.of(reg, conflict))
                continue
            new_selected.add(reg.id)

        if skipped:
            logger.info(
                "Skipped %d registration(s) with overlapping shifts: %s",
                len(skipped),
                ", ".join(s.employee_name for s in skipped[:3]),
            )

        return SelectionResult(selected=frozenset(new_selected), skipped=tuple(skipped))

    def conflicting_registrations(
        self, selection: Iterable[str]
    ) -> dict[str, ConflictResult]:
        """For each unselected registration, the selected shift it collides with."""
        current = frozenset(selection)
        selected = self.selected_registrations(current)
        conflicts: dict[str, ConflictResult] = {}
        for reg in self.registrations:
            if reg.id in current:
                continue
            result = would_conflict(reg, selected)
            if result.has_conflict:
                conflicts[reg.id] = result
        return conflicts

    def build_approval_batch(self, selection: Iterable[str]) -> ApprovalBatch:
        """Turn a submitted selection into status decisions.

        Selected pending registrations are approved, unselected pending ones
        are rejected. Approved and rejected registrations are terminal and
        stay as they are, selected or not. A selected pending registration
        that overlaps an existing approval, or one accepted earlier in
        display order, is treated as unselected and reported.
        """
        current = frozenset(selection)
        unknown = current - self._by_id.keys()
        if unknown:
            raise KeyError(f"Unknown registration(s): {', '.join(sorted(unknown))}")

        batch = ApprovalBatch()
        accepted = [r for r in self.registrations if r.status == RegistrationStatus.APPROVED]
        for reg in self.registrations:
            if reg.id not in current or reg.status != RegistrationStatus.PENDING:
                continue
            conflict = would_conflict(reg, accepted)
            if conflict.has_conflict:
                batch.skipped.append(SkippedRegistration.of(reg, conflict))
                continue
            accepted.append(reg)

        accepted_ids = {r.id for r in accepted}
        for reg in self.registrations:
            target = (
                RegistrationStatus.APPROVED
                if reg.id in accepted_ids
                else RegistrationStatus.REJECTED
            )
            if not RegistrationStateMachine.can_transition(reg.status, target):
                batch.unchanged.append(reg.id)
            elif target == RegistrationStatus.APPROVED:
                batch.approve.append(reg.id)
            else:
                batch.reject.append(reg.id)

        if batch.skipped:
            logger.warning(
                "Approval batch dropped %d overlapping registration(s)", len(batch.skipped)
            )
        return batch
