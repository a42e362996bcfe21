"""Persistence of payslip rows in the monthly_salaries table.

Every status change is a conditional ``UPDATE ... WHERE is_finalized =
<expected>``. Two managers finalizing the same month race on that
predicate; the loser matches no row and gets ConcurrentFinalizationError.
The store never commits; the caller owns the transaction.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payslip_engine.calculators.types import PayslipRow
from payslip_engine.models import MonthlySalary
from payslip_engine.services.locking_service import FinalizedBatch


class ConcurrentFinalizationError(Exception):
    """Raised when a guarded status write finds the row in another state."""

    def __init__(self, employee_id: str, month: str, expected_finalized: bool):
        self.employee_id = employee_id
        self.month = month
        self.expected_finalized = expected_finalized
        expected = "finalized" if expected_finalized else "draft"
        super().__init__(
            f"Payslip for employee {employee_id} in {month} is no longer {expected}"
        )


class PayslipLockedError(Exception):
    """Raised when a draft save would overwrite a finalized payslip."""

    def __init__(self, employee_id: str, month: str):
        self.employee_id = employee_id
        self.month = month
        super().__init__(
            f"Payslip for employee {employee_id} in {month} is finalized and cannot be saved"
        )


class PayslipStore:
    """Reads and writes payslip rows inside the caller's transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_rows(self, month: str, branch_id: str | None = None) -> list[PayslipRow]:
        """Rows of one month, optionally limited to a branch, by employee id."""
        query = select(MonthlySalary).where(MonthlySalary.month == month)
        if branch_id is not None:
            query = query.where(MonthlySalary.branch_id == branch_id)
        query = query.order_by(MonthlySalary.employee_id).execution_options(
            populate_existing=True
        )
        result = await self.session.execute(query)
        return [m.to_row() for m in result.scalars().all()]

    async def get_row(self, employee_id: str, month: str) -> PayslipRow | None:
        result = await self.session.execute(
            select(MonthlySalary)
            .where(MonthlySalary.employee_id == employee_id, MonthlySalary.month == month)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return model.to_row() if model is not None else None

    async def save_drafts(self, rows: Iterable[PayslipRow]) -> int:
        """Insert or update draft rows. Returns the number of rows written.

        Raises PayslipLockedError if a row is finalized, either in the input
        or already in storage.
        """
        written = 0
        for row in rows:
            if row.is_finalized:
                raise PayslipLockedError(row.employee_id, row.month)

            values = MonthlySalary.values_from_row(row)
            result = await self.session.execute(
                update(MonthlySalary)
                .where(
                    MonthlySalary.employee_id == row.employee_id,
                    MonthlySalary.month == row.month,
                    MonthlySalary.is_finalized.is_(False),
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                existing = await self.session.execute(
                    select(MonthlySalary.id).where(
                        MonthlySalary.employee_id == row.employee_id,
                        MonthlySalary.month == row.month,
                    )
                )
                if existing.scalar_one_or_none() is not None:
                    raise PayslipLockedError(row.employee_id, row.month)
                self.session.add(MonthlySalary(**values))

            written += 1

        await self.session.flush()
        return written

    async def save_finalization(self, batch: FinalizedBatch) -> int:
        """Persist a finalize batch; every row must still be a draft."""
        return await self._save_transition(batch, expected_finalized=False)

    async def save_reopen(self, batch: FinalizedBatch) -> int:
        """Persist a re-open batch; every row must still be finalized."""
        return await self._save_transition(batch, expected_finalized=True)

    async def _save_transition(self, batch: FinalizedBatch, expected_finalized: bool) -> int:
        for row in batch.rows:
            result = await self.session.execute(
                update(MonthlySalary)
                .where(
                    MonthlySalary.employee_id == row.employee_id,
                    MonthlySalary.month == row.month,
                    MonthlySalary.is_finalized.is_(expected_finalized),
                )
                .values(
                    is_finalized=row.is_finalized,
                    finalized_at=row.finalized_at,
                    finalized_by=row.finalized_by,
                    reopened_at=row.reopened_at,
                    reopened_by=row.reopened_by,
                    reopen_reason=row.reopen_reason,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConcurrentFinalizationError(row.employee_id, row.month, expected_finalized)

        return len(batch.rows)
