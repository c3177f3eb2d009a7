# This project was developed with assistance from AI tools.
"""Schema integrity tests after alembic upgrade head."""

import pytest
from db.enums import PoolStatus
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from .conftest import make_pool

pytestmark = pytest.mark.integration


async def test_all_tables_exist(db_session):
    result = await db_session.execute(
        text("SELECT tablename FROM pg_tables WHERE schemaname = 'public' ORDER BY tablename")
    )
    tables = {row[0] for row in result.fetchall()}
    expected = {
        "users",
        "borrower_profiles",
        "lender_profiles",
        "pools",
        "pool_commitments",
        "repayments",
        "transactions",
        "sandbox_accounts",
        "notifications",
        "audit_events",
        "demo_data_manifest",
    }
    missing = expected - tables
    assert not missing, f"Missing tables: {missing}"


async def test_second_live_pool_for_borrower_rejected(db_session):
    """uq_pools_borrower_live allows one unfinished pool per borrower."""
    db_session.add(make_pool("POOL-LIVE00001", "UDYAM-DL-22-0004321"))
    await db_session.flush()

    db_session.add(make_pool("POOL-LIVE00002", "UDYAM-DL-22-0004321"))
    with pytest.raises(IntegrityError, match="uq_pools_borrower_live"):
        await db_session.flush()


async def test_repaid_pool_does_not_block_new_one(db_session):
    db_session.add_all(
        [
            make_pool("POOL-DONE00001", "UDYAM-DL-22-0004321", status=PoolStatus.REPAID),
            make_pool("POOL-DONE00002", "UDYAM-DL-22-0004321", status=PoolStatus.CLOSED),
            make_pool("POOL-NEXT00001", "UDYAM-DL-22-0004321"),
        ]
    )
    await db_session.flush()

    count = await db_session.execute(
        text("SELECT count(*) FROM pools WHERE borrower_id = 'UDYAM-DL-22-0004321'")
    )
    assert count.scalar() == 3


async def test_audit_events_reject_update(db_session):
    await db_session.execute(
        text("INSERT INTO audit_events (event_type, user_id) VALUES ('update_block', 'u')")
    )
    with pytest.raises(Exception, match="append-only"):
        await db_session.execute(
            text("UPDATE audit_events SET event_type = 'tampered' WHERE event_type = 'update_block'")
        )
