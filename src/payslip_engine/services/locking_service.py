"""Finalize and re-open payslip batches.

A batch is every row of one (month, branch). Finalization is all or
nothing: every row is validated before any new row is built, and the
caller's rows are never mutated. Persisting the result is left to
``PayslipStore``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Iterable

from payslip_engine.calculators.types import PayslipRow
from payslip_engine.services.state_machine import (
    InvalidTransitionError,
    PayslipStateMachine,
    PayslipStatus,
)

logger = logging.getLogger(__name__)


class EmptyBatchError(Exception):
    """Raised when finalize or unfinalize is called with no rows."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Cannot {action} an empty batch")


class MixedBatchError(Exception):
    """Raised when the rows of one batch span several (month, branch) keys."""

    def __init__(self, keys: Iterable[tuple[str, str | None]]):
        self.keys = sorted(keys, key=lambda k: (k[0], k[1] or ""))
        listed = ", ".join(f"{month}/{branch or '-'}" for month, branch in self.keys)
        super().__init__(f"Batch rows must share one month and branch, got {listed}")


class ReopenReasonRequiredError(Exception):
    """Raised when a finalized batch is re-opened without a reason."""

    def __init__(self, month: str, branch_id: str | None):
        self.month = month
        self.branch_id = branch_id
        super().__init__(f"A reason is required to re-open payslips for {month}")


@dataclass(frozen=True)
class FinalizedBatch:
    """New rows produced by a finalize or re-open, ready to persist."""

    rows: tuple[PayslipRow, ...]
    actor_id: str
    at: datetime
    month: str
    branch_id: str | None
    to_status: PayslipStatus
    reason: str | None = None

    @property
    def employee_ids(self) -> list[str]:
        return [r.employee_id for r in self.rows]

    @property
    def is_reopen(self) -> bool:
        return self.to_status == PayslipStatus.DRAFT


class LockingService:
    """Builds finalized or re-opened copies of a payslip batch."""

    def finalize(
        self,
        rows: Iterable[PayslipRow],
        actor_id: str,
        at: datetime | None = None,
    ) -> FinalizedBatch:
        """Finalize every row of a batch or none of them.

        Raises EmptyBatchError, MixedBatchError, or InvalidTransitionError if
        any row is already finalized.
        """
        rows = list(rows)
        month, branch_id = self._batch_key(rows, "finalize")
        self._validate_all(rows, PayslipStatus.FINALIZED)

        at = at or datetime.now(timezone.utc)
        finalized = tuple(
            replace(row, is_finalized=True, finalized_at=at, finalized_by=actor_id)
            for row in rows
        )
        logger.info(
            "Finalized %d payslip(s) for %s branch=%s by %s",
            len(finalized),
            month,
            branch_id,
            actor_id,
        )
        return FinalizedBatch(
            rows=finalized,
            actor_id=actor_id,
            at=at,
            month=month,
            branch_id=branch_id,
            to_status=PayslipStatus.FINALIZED,
        )

    def unfinalize(
        self,
        rows: Iterable[PayslipRow],
        actor_id: str,
        reason: str | None,
        at: datetime | None = None,
    ) -> FinalizedBatch:
        """Re-open a finalized batch so its rows can be edited again.

        This is a privileged action: it needs a reason, which is stamped on
        every row together with the actor and time.
        """
        rows = list(rows)
        month, branch_id = self._batch_key(rows, "unfinalize")
        if not reason or not reason.strip():
            raise ReopenReasonRequiredError(month, branch_id)
        self._validate_all(rows, PayslipStatus.DRAFT)

        at = at or datetime.now(timezone.utc)
        reason = reason.strip()
        reopened = tuple(
            replace(
                row,
                is_finalized=False,
                finalized_at=None,
                finalized_by=None,
                reopened_at=at,
                reopened_by=actor_id,
                reopen_reason=reason,
            )
            for row in rows
        )
        logger.info(
            "Re-opened %d payslip(s) for %s branch=%s by %s: %s",
            len(reopened),
            month,
            branch_id,
            actor_id,
            reason,
        )
        return FinalizedBatch(
            rows=reopened,
            actor_id=actor_id,
            at=at,
            month=month,
            branch_id=branch_id,
            to_status=PayslipStatus.DRAFT,
            reason=reason,
        )

    def _batch_key(self, rows: list[PayslipRow], action: str) -> tuple[str, str | None]:
        if not rows:
            raise EmptyBatchError(action)
        keys = {row.key for row in rows}
        if len(keys) > 1:
            raise MixedBatchError(keys)
        return rows[0].key

    def _validate_all(self, rows: list[PayslipRow], to_status: PayslipStatus) -> None:
        # Checked up front so a bad row anywhere rejects the whole batch
        for row in rows:
            from_status = PayslipStatus.of(row.is_finalized)
            if not PayslipStateMachine.can_transition(from_status, to_status):
                raise InvalidTransitionError(
                    from_status.value,
                    to_status.value,
                    f"payslip for employee {row.employee_id} is already {from_status.value}",
                )
