# This project was developed with assistance from AI tools.
"""Borrower repayments and the credit score feedback loop.

Instalment n of a pool falls due ``n * REPAYMENT_CYCLE_DAYS`` after the pool
was funded. Paying after the due date records the instalment as LATE, and
every repayment re-scores the borrower.
"""

import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from db import BorrowerProfile, Notification, Pool, PoolCommitment, Repayment
from db.enums import NotificationType, PoolStatus, RepaymentStatus, UserRole
from sqlalchemy import false, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from .audit import write_audit_event
from .events import POOL_UPDATED, REPAYMENT_RECORDED, RegistryEvent, publish
from .notifications import add_notification, publish_notifications
from .pools import get_pool, new_reference, pool_event, sync_commitment_status
from .scoring import recompute_credit_score
from .users import get_borrower_profile

logger = logging.getLogger(__name__)


class RepaymentRejectedError(ValueError):
    """Raised when a repayment cannot be applied to a pool."""

    pass


_REPAYABLE_STATUSES = frozenset({PoolStatus.FUNDED, PoolStatus.ACTIVE})


def due_date_for(funded_at: datetime, instalment: int) -> datetime:
    """Due date of the n-th instalment (1-based) for a pool funded at ``funded_at``."""
    return funded_at + timedelta(days=settings.REPAYMENT_CYCLE_DAYS * instalment)


def repayment_payload(repayment: Repayment) -> dict:
    return {
        "id": repayment.id,
        "pool_id": repayment.pool_id,
        "borrower_id": repayment.borrower_id,
        "amount": str(repayment.amount),
        "status": repayment.status.value,
        "due_date": repayment.due_date.isoformat() if repayment.due_date else None,
        "paid_at": repayment.paid_at.isoformat() if repayment.paid_at else None,
    }


async def stage_repayment(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
    amount: Decimal,
) -> tuple[Pool, Repayment, list[Notification]] | None:
    """Lock the pool, validate, and record a repayment without committing.

    Returns None when the pool is not visible. Raises RepaymentRejectedError
    before anything is written when the repayment is not allowed.
    """
    if amount <= 0:
        raise RepaymentRejectedError("Repayment amount must be greater than zero.")

    pool = await get_pool(session, user, pool_id, for_update=True)
    if pool is None:
        return None
    if pool.borrower_id != user.user_id:
        raise RepaymentRejectedError("Only the borrower who owns this pool can repay it.")
    if pool.status not in _REPAYABLE_STATUSES:
        raise RepaymentRejectedError(
            f"Pool {pool_id} is {pool.status.value}; repayments are accepted only once it is "
            f"funded and until it is repaid."
        )
    outstanding = Decimal(pool.amount) - Decimal(pool.total_repaid or 0)
    if amount > outstanding:
        raise RepaymentRejectedError(f"Repayment of ₹{amount} exceeds the outstanding ₹{outstanding}.")

    count_stmt = select(func.count(Repayment.id)).where(Repayment.pool_id == pool_id)
    instalment = ((await session.execute(count_stmt)).scalar() or 0) + 1

    now = datetime.now(UTC)
    due_date = due_date_for(pool.funded_at or pool.created_at, instalment)
    status = RepaymentStatus.PAID if now <= due_date else RepaymentStatus.LATE

    repayment = Repayment(
        id=new_reference("REPAY"),
        pool_id=pool.id,
        borrower_id=pool.borrower_id,
        amount=amount,
        due_date=due_date,
        status=status,
        paid_at=now,
    )
    session.add(repayment)

    previous = pool.status
    pool.total_repaid = Decimal(pool.total_repaid or 0) + amount
    if pool.status == PoolStatus.FUNDED:
        pool.status = PoolStatus.ACTIVE
    if pool.total_repaid >= Decimal(pool.amount):
        pool.status = PoolStatus.REPAID
    if pool.status != previous:
        await sync_commitment_status(session, pool.id, pool.status)

    notifications = []
    for lender_id in sorted({c.lender_id for c in pool.commitments}):
        notifications.append(
            await add_notification(
                session,
                lender_id,
                "Payment Received!",
                f"{pool.borrower_name} repaid ₹{amount} on pool {pool.id}.",
                NotificationType.SUCCESS,
            )
        )

    await write_audit_event(
        session,
        event_type="repayment_recorded",
        user_id=user.user_id,
        user_role=user.role.value,
        pool_id=pool.id,
        event_data={
            "repayment_id": repayment.id,
            "amount": str(amount),
            "instalment": instalment,
            "status": status.value,
            "pool_status": pool.status.value,
        },
    )
    return pool, repayment, notifications


async def refresh_credit_score(session: AsyncSession, borrower_id: str) -> int:
    """Re-score a borrower from their repayment history.

    The base is the score the borrower's current assessment started with, so
    the update reflects the whole history once rather than compounding. The
    new score is stored on the profile and its assessment, and copied onto
    every pool they own.
    """
    result = await session.execute(
        select(Repayment)
        .where(Repayment.borrower_id == borrower_id)
        .order_by(Repayment.paid_at.asc())
    )
    history = [
        {
            "amount": str(r.amount),
            "status": r.status.value,
            "due_date": r.due_date.isoformat() if r.due_date else None,
            "paid_at": r.paid_at.isoformat() if r.paid_at else None,
        }
        for r in result.unique().scalars().all()
    ]

    record = await get_borrower_profile(session, borrower_id)
    base = None
    if record is not None:
        assessment = record.assessment or {}
        base = assessment.get("base_score", assessment.get("score", record.credit_score))

    new_score = await recompute_credit_score(base, history)

    if record is None:
        record = BorrowerProfile(udyam_id=borrower_id)
        session.add(record)
    record.credit_score = new_score
    if record.assessment:
        # Reassigned so the JSON column registers the change
        record.assessment = {**record.assessment, "base_score": base, "score": new_score}
    await session.execute(update(Pool).where(Pool.borrower_id == borrower_id).values(score=new_score))
    await session.commit()
    logger.info("Credit score for %s is now %s", borrower_id, new_score)
    return new_score


async def publish_repayment(
    session: AsyncSession,
    user: UserContext,
    repayment: Repayment,
    notifications: list[Notification],
    credit_score: int,
) -> None:
    publish_notifications(notifications)
    publish(
        RegistryEvent(
            type=REPAYMENT_RECORDED,
            pool_id=repayment.pool_id,
            owner_id=repayment.borrower_id,
            data={**repayment_payload(repayment), "credit_score": credit_score},
        )
    )
    pool = await get_pool(session, user, repayment.pool_id)
    if pool is not None:
        publish(pool_event(POOL_UPDATED, pool))


async def submit_repayment(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
    amount: Decimal,
) -> Repayment | None:
    """Record a repayment on the borrower's own funded pool.

    Returns None if the pool is not found. Raises RepaymentRejectedError if
    the pool is not in a repayable state.
    """
    staged = await stage_repayment(session, user, pool_id, amount)
    if staged is None:
        return None
    _, repayment, notifications = staged
    await session.commit()
    logger.info("Repayment %s of %s recorded on %s", repayment.id, amount, pool_id)

    score = await refresh_credit_score(session, repayment.borrower_id)
    await publish_repayment(session, user, repayment, notifications, score)
    return repayment


async def list_repayments(
    session: AsyncSession,
    user: UserContext,
    *,
    pool_id: str | None = None,
) -> list[Repayment]:
    """Return repayments visible to the caller, most recent payment first.

    Borrowers see their own, lenders see repayments on pools they pledged
    into, and admins see everything.
    """
    stmt = select(Repayment).order_by(Repayment.paid_at.desc().nulls_last())
    if pool_id is not None:
        stmt = stmt.where(Repayment.pool_id == pool_id)

    if user.role == UserRole.ADMIN:
        pass
    elif user.role == UserRole.BORROWER:
        stmt = stmt.where(Repayment.borrower_id == user.user_id)
    elif user.role == UserRole.LENDER:
        pledged = select(PoolCommitment.pool_id).where(PoolCommitment.lender_id == user.user_id)
        stmt = stmt.where(Repayment.pool_id.in_(pledged))
    else:
        stmt = stmt.where(false())

    result = await session.execute(stmt)
    return list(result.unique().scalars().all())
