# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container (started once per test run) is migrated with
``alembic upgrade head``. Function-scoped fixtures give each test an
isolated DB session with savepoint rollback so tests don't leak state.

Run with ``pytest -m integration`` (needs a Docker daemon).
"""

import os
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

pytestmark = pytest.mark.integration

_DB_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


# ---------------------------------------------------------------------------
# Session-scoped: container + engine + migrations
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16 via testcontainers."""
    with PostgresContainer(
        image="postgres:16-alpine",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def _run_migrations(db_url):
    """Run alembic upgrade head against the container."""
    from alembic import command
    from alembic.config import Config
    from db.config import db_settings

    # alembic/env.py takes its URL from db_settings
    db_settings.DATABASE_URL = db_url
    alembic_cfg = Config(os.path.join(_DB_DIR, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(_DB_DIR, "alembic"))
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def async_engine(db_url, _run_migrations):
    """Create an async engine pointing at the test container."""
    engine = create_async_engine(db_url, echo=False, poolclass=NullPool)
    yield engine


# ---------------------------------------------------------------------------
# Function-scoped: per-test session with savepoint rollback
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test DB session with savepoint rollback.

    Service commits release a savepoint; the outer transaction is rolled
    back when the test ends.
    """
    conn = await async_engine.connect()
    txn = await conn.begin()
    session = AsyncSession(
        bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False
    )
    yield session
    await session.close()
    await txn.rollback()
    await conn.close()


# ---------------------------------------------------------------------------
# Seed data helpers
# ---------------------------------------------------------------------------


def make_pool(pool_id: str, borrower_id: str, amount: str = "500000", **overrides):
    """A scored OPEN pool row ready to insert."""
    from db import Pool
    from db.enums import Industry, LoanPurpose, PoolStatus, RiskCategory

    from ..factories import FINANCE, PROFILE

    fields = dict(
        id=pool_id,
        borrower_id=borrower_id,
        borrower_name=PROFILE["name"],
        profile=dict(PROFILE),
        finance=dict(FINANCE),
        industry=Industry.MANUFACTURING,
        amount=Decimal(amount),
        purpose=LoanPurpose.WORKING_CAPITAL,
        tenure_months=12,
        interest_min=Decimal("12"),
        interest_max=Decimal("16"),
        score=72,
        default_probability=0.08,
        risk_category=RiskCategory.LOW,
        suggested_interest_rate=Decimal("13.5"),
        eligible_pool_size=Decimal("450000"),
        reasoning="Steady revenue with moderate leverage.",
        total_funded=Decimal("0"),
        total_repaid=Decimal("0"),
        status=PoolStatus.OPEN,
    )
    fields.update(overrides)
    return Pool(**fields)


@pytest_asyncio.fixture
async def open_pool(db_session):
    """One OPEN pool owned by the Punjab borrower, with their saved profile."""
    from db import BorrowerProfile

    from ..factories import FINANCE, LOAN, PROFILE

    pool = make_pool("POOL-INTEG0001", "UDYAM-PB-20-0001234")
    db_session.add_all(
        [
            pool,
            BorrowerProfile(
                udyam_id="UDYAM-PB-20-0001234",
                profile=dict(PROFILE),
                finance=dict(FINANCE),
                loan=dict(LOAN),
                assessment={"score": 72, "risk_category": "Low"},
                credit_score=72,
            ),
        ]
    )
    await db_session.flush()
    return pool
