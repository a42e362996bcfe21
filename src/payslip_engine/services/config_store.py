"""Load payroll configuration from the system_configs table."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payslip_engine.calculators.payroll_config import PayrollConfig
from payslip_engine.models import SystemConfig

logger = logging.getLogger(__name__)

PAYROLL_GROUP = "payroll"


async def load_payroll_config(session: AsyncSession) -> PayrollConfig:
    """Build one PayrollConfig snapshot from the ``payroll`` config group.

    Missing keys fall back to the built-in defaults; with no rows at all the
    default snapshot is returned.
    """
    result = await session.execute(
        select(SystemConfig).where(SystemConfig.group == PAYROLL_GROUP)
    )
    entries = list(result.scalars().all())
    if not entries:
        return PayrollConfig()

    values = {entry.key: entry.value for entry in entries}
    config = PayrollConfig.from_key_values(values)
    logger.debug("Loaded payroll config %s from %d key(s)", config.fingerprint(), len(values))
    return config


async def seed_payroll_config(
    session: AsyncSession, config: PayrollConfig | None = None
) -> int:
    """Insert any payroll keys that are not stored yet.

    Existing keys are left alone. Returns the number of keys inserted.
    """
    config = config or PayrollConfig()
    result = await session.execute(
        select(SystemConfig.key).where(SystemConfig.group == PAYROLL_GROUP)
    )
    existing = set(result.scalars().all())

    inserted = 0
    for key, value in config.to_key_values().items():
        if key in existing:
            continue
        session.add(SystemConfig(key=key, group=PAYROLL_GROUP, value=value))
        inserted += 1

    await session.flush()
    return inserted
