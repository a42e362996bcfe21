"""Integration test fixtures with a real database.

Each test gets its own SQLite file so that two sessions use two
connections, the way two managers' requests would.
"""

from collections.abc import AsyncGenerator
from dataclasses import replace
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payslip_engine.api.app import create_app
from payslip_engine.api.dependencies import get_db_session
from payslip_engine.calculators.engine import PayrollEngine
from payslip_engine.calculators.types import (
    EmployeeContractTerms,
    MonthlyAggregate,
    PayslipRow,
)
from payslip_engine.database import create_schema, get_engine, make_session_factory

MONTH = "2024-09"
BRANCH = "hcm-1"


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create a database engine on a fresh schema."""
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'payslips.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for integration tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to the test database."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def draft_rows(engine: PayrollEngine, monthly_terms: EmployeeContractTerms) -> list[PayslipRow]:
    """Three generated draft rows for one branch and month."""
    return [
        engine.generate(
            MonthlyAggregate(
                employee_id=f"emp-00{i}",
                month=MONTH,
                actual_work_days=Decimal("22"),
            ),
            monthly_terms,
        )
        for i in range(1, 4)
    ]


@pytest.fixture
def other_branch_row(draft_rows: list[PayslipRow]) -> PayslipRow:
    return replace(draft_rows[0], employee_id="emp-101", branch_id="hn-1")
