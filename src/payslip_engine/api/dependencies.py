"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from payslip_engine.calculators.payroll_config import PayrollConfig
from payslip_engine.database import init_db
from payslip_engine.services.config_store import load_payroll_config


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_payroll_config(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> PayrollConfig:
    """Load one payroll config snapshot for the request."""
    return await load_payroll_config(db)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
PayrollConfigDep = Annotated[PayrollConfig, Depends(get_payroll_config)]
