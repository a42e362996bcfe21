"""Transactional orchestration of payslip storage and finalization."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from payslip_engine.calculators.types import PayslipRow
from payslip_engine.services.locking_service import FinalizedBatch, LockingService
from payslip_engine.services.payslip_store import PayslipStore

logger = logging.getLogger(__name__)


class PayrollService:
    """Runs store writes for one request inside a single transaction.

    Operations:
    - save_drafts: upsert draft rows
    - finalize: lock every row of a (month, branch)
    - unfinalize: re-open a finalized (month, branch) with a reason

    Validation happens in LockingService before anything is written. Any
    failure while writing rolls the whole transaction back, so a batch is
    never left half finalized.
    """

    def __init__(self, session: AsyncSession, locking: LockingService | None = None):
        self.session = session
        self.store = PayslipStore(session)
        self.locking = locking or LockingService()

    async def list_rows(self, month: str, branch_id: str | None = None) -> list[PayslipRow]:
        return await self.store.list_rows(month, branch_id)

    async def save_drafts(self, rows: Iterable[PayslipRow]) -> int:
        try:
            written = await self.store.save_drafts(rows)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return written

    async def finalize(
        self, month: str, branch_id: str | None, actor_id: str
    ) -> FinalizedBatch:
        """Finalize every stored row of one month and branch."""
        rows = await self.store.list_rows(month, branch_id)
        batch = self.locking.finalize(rows, actor_id)
        await self.commit_batch(batch)
        return batch

    async def unfinalize(
        self,
        month: str,
        branch_id: str | None,
        actor_id: str,
        reason: str | None,
    ) -> FinalizedBatch:
        """Re-open every stored row of one month and branch."""
        rows = await self.store.list_rows(month, branch_id)
        batch = self.locking.unfinalize(rows, actor_id, reason)
        await self.commit_batch(batch)
        return batch

    async def commit_batch(self, batch: FinalizedBatch) -> None:
        """Write a prepared batch and commit, or roll back every row."""
        try:
            if batch.is_reopen:
                await self.store.save_reopen(batch)
            else:
                await self.store.save_finalization(batch)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.warning(
                "Rolled back %s of %d payslip(s) for %s branch=%s",
                "re-open" if batch.is_reopen else "finalization",
                len(batch.rows),
                batch.month,
                batch.branch_id,
            )
            raise
