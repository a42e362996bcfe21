"""Create the tables and seed default payroll configuration.

Run with:
    python scripts/seed_payroll_config.py

Keys that already exist in system_configs are left untouched, so the
script is safe to re-run after an administrator has changed a rate.
"""

from __future__ import annotations

import asyncio

from payslip_engine.calculators.payroll_config import PayrollConfig
from payslip_engine.database import create_schema, dispose_db, get_session, init_db
from payslip_engine.services.config_store import load_payroll_config, seed_payroll_config


async def main():
    """Run seed script."""
    print("Creating tables...")
    engine, _ = init_db()
    await create_schema(engine)

    print("Seeding payroll config...")
    async with get_session() as session:
        inserted = await seed_payroll_config(session, PayrollConfig())
        config = await load_payroll_config(session)

    print(f"Inserted {inserted} key(s); active config fingerprint {config.fingerprint()}")
    await dispose_db()


if __name__ == "__main__":
    asyncio.run(main())
