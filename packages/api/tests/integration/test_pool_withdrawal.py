# This project was developed with assistance from AI tools.
"""Withdrawing a pool removes its pledges and repayments in one transaction."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from db import AuditEvent, BorrowerProfile, Notification, Pool, PoolCommitment, Repayment
from db.enums import NotificationType, RepaymentStatus, UserRole
from sqlalchemy import func, select

from src.services.pledges import invest_in_pool
from src.services.pools import delete_pool

from ..factories import FINANCE, PROFILE, make_user

pytestmark = pytest.mark.integration

BORROWER = make_user(UserRole.BORROWER, "UDYAM-PB-20-0001234")
LENDER = make_user(UserRole.LENDER, "UDYAM-KA-19-0005678", "Karnataka Tech Solutions")


async def _count(session, model, *criteria) -> int:
    return (await session.execute(select(func.count()).select_from(model).where(*criteria))).scalar()


async def test_withdrawal_cascades_and_keeps_autofill(db_session, open_pool):
    pool_id = open_pool.id
    await invest_in_pool(db_session, LENDER, pool_id, Decimal("200000"), 12)
    db_session.add(
        Repayment(
            id="REPAY-INTEG0001",
            pool_id=pool_id,
            borrower_id=BORROWER.user_id,
            amount=Decimal("1000"),
            due_date=datetime(2026, 4, 1, tzinfo=UTC),
            status=RepaymentStatus.SCHEDULED,
        )
    )
    await db_session.flush()

    deleted = await delete_pool(db_session, BORROWER, pool_id)

    assert deleted.id == pool_id
    assert await _count(db_session, Pool, Pool.id == pool_id) == 0
    assert await _count(db_session, PoolCommitment, PoolCommitment.pool_id == pool_id) == 0
    assert await _count(db_session, Repayment, Repayment.pool_id == pool_id) == 0

    profile = (
        await db_session.execute(
            select(BorrowerProfile)
            .where(BorrowerProfile.udyam_id == BORROWER.user_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert profile.loan is None
    assert profile.assessment is None
    assert profile.profile == PROFILE
    assert profile.finance == FINANCE

    notices = (
        await db_session.execute(
            select(Notification).where(
                Notification.user_id == LENDER.user_id,
                Notification.type == NotificationType.WARNING,
            )
        )
    ).scalars().all()
    assert [n.title for n in notices] == ["Pool Withdrawn"]

    audit = (
        await db_session.execute(
            select(AuditEvent).where(
                AuditEvent.pool_id == pool_id, AuditEvent.event_type == "pool_deleted"
            )
        )
    ).scalar_one()
    assert audit.event_data["lenders_notified"] == 1
    assert audit.event_data["total_funded"] == "200000.00"


async def test_other_borrower_cannot_withdraw(db_session, open_pool):
    stranger = make_user(UserRole.BORROWER, "UDYAM-DL-22-0004321")

    assert await delete_pool(db_session, stranger, open_pool.id) is None
    assert await _count(db_session, Pool, Pool.id == open_pool.id) == 1
