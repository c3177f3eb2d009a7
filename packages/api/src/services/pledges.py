# This project was developed with assistance from AI tools.
"""Lender pledges, preferences, and portfolio.

A pledge locks the pool row for the rest of its transaction, so concurrent
pledges are serialized and the funded total can never pass the requested
amount.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from db import LenderProfile, Notification, Pool, PoolCommitment
from db.enums import CommitmentStatus, NotificationType, PoolStatus, RiskAppetite
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import settings
from ..schemas.auth import UserContext
from ..schemas.lender import LenderPreferences
from ..schemas.pool import AllocationSuggestion
from .audit import write_audit_event
from .events import POOL_UPDATED, publish
from .notifications import add_notification, publish_notifications
from .pools import get_pool, pool_assessment, pool_event, remaining_amount
from .scoring import suggest_allocation

logger = logging.getLogger(__name__)


class PledgeRejectedError(ValueError):
    """Raised when a pledge cannot be accepted into a pool."""

    pass


RISK_EXPOSURE = {
    RiskAppetite.AGGRESSIVE: 45,
    RiskAppetite.BALANCED: 22,
    RiskAppetite.CONSERVATIVE: 8,
}


async def stage_pledge(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
    amount: Decimal,
    repayment_duration: int,
) -> tuple[Pool, list[Notification]] | None:
    """Lock the pool, validate, and apply a pledge without committing.

    All checks run before anything is written, so a PledgeRejectedError
    leaves the session clean. Returns None when the pool is not visible.
    """
    if amount <= 0:
        raise PledgeRejectedError("Pledge amount must be greater than zero.")
    if not 1 <= repayment_duration <= settings.MAX_PLEDGE_DURATION_MONTHS:
        raise PledgeRejectedError(
            f"Repayment duration must be between 1 and "
            f"{settings.MAX_PLEDGE_DURATION_MONTHS} months."
        )

    pool = await get_pool(session, user, pool_id, for_update=True)
    if pool is None:
        return None
    if pool.borrower_id == user.user_id:
        raise PledgeRejectedError("You cannot pledge into your own pool.")
    if pool.status != PoolStatus.OPEN:
        raise PledgeRejectedError(
            f"Pool {pool_id} is {pool.status.value} and no longer accepts pledges."
        )
    remaining = remaining_amount(pool)
    if amount > remaining:
        raise PledgeRejectedError(f"Pledge of ₹{amount} exceeds the remaining ₹{remaining}.")

    session.add(
        PoolCommitment(
            pool_id=pool.id,
            lender_id=user.user_id,
            lender_name=user.name,
            amount=amount,
            repayment_duration=repayment_duration,
            status=CommitmentStatus.ACCEPTED,
        )
    )
    pool.total_funded = Decimal(pool.total_funded or 0) + amount

    notifications = [
        await add_notification(
            session,
            pool.borrower_id,
            "New Pledge!",
            f"{user.name} pledged ₹{amount} to your pool {pool.id}.",
            NotificationType.INFO,
        )
    ]
    if pool.total_funded >= Decimal(pool.amount):
        pool.status = PoolStatus.FUNDED
        pool.funded_at = datetime.now(UTC)
        notifications.append(
            await add_notification(
                session,
                pool.borrower_id,
                "Pool Funded",
                f"Your pool {pool.id} is fully funded. Repayments start from today.",
                NotificationType.SUCCESS,
            )
        )

    await write_audit_event(
        session,
        event_type="pledge_committed",
        user_id=user.user_id,
        user_role=user.role.value,
        pool_id=pool.id,
        event_data={
            "amount": str(amount),
            "repayment_duration": repayment_duration,
            "total_funded": str(pool.total_funded),
            "status": pool.status.value,
        },
    )
    return pool, notifications


async def publish_pledge(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
    notifications: list[Notification],
) -> Pool | None:
    """Broadcast a committed pledge and return the refreshed pool."""
    publish_notifications(notifications)
    pool = await get_pool(session, user, pool_id)
    if pool is not None:
        publish(pool_event(POOL_UPDATED, pool))
    return pool


async def invest_in_pool(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
    amount: Decimal,
    repayment_duration: int,
) -> Pool | None:
    """Pledge capital into an open pool.

    Returns None if the pool is not found. Raises PledgeRejectedError if the
    pool is not open or the amount exceeds what is left to fund.
    """
    staged = await stage_pledge(session, user, pool_id, amount, repayment_duration)
    if staged is None:
        return None
    _, notifications = staged
    await session.commit()
    logger.info("Lender %s pledged %s into %s", user.user_id, amount, pool_id)
    return await publish_pledge(session, user, pool_id, notifications)


async def get_lender_profile(session: AsyncSession, udyam_id: str) -> LenderProfile | None:
    result = await session.execute(select(LenderProfile).where(LenderProfile.udyam_id == udyam_id))
    return result.unique().scalar_one_or_none()


async def save_lender_preferences(
    session: AsyncSession,
    udyam_id: str,
    preferences: LenderPreferences,
) -> LenderProfile:
    """Merge-save the lender's investment preferences."""
    record = await get_lender_profile(session, udyam_id)
    if record is None:
        record = LenderProfile(udyam_id=udyam_id)
        session.add(record)

    merged = {
        **(record.preferences or {}),
        **preferences.model_dump(mode="json", exclude_unset=True),
    }
    record.preferences = LenderPreferences.model_validate(merged).model_dump(mode="json")
    await session.commit()
    await session.refresh(record)
    return record


async def set_wallet(session: AsyncSession, udyam_id: str, wallet_address: str) -> LenderProfile:
    """Link a wallet address to the lender profile."""
    record = await get_lender_profile(session, udyam_id)
    if record is None:
        record = LenderProfile(udyam_id=udyam_id)
        session.add(record)
    record.wallet_address = wallet_address
    await session.commit()
    await session.refresh(record)
    return record


async def get_lender_portfolio(session: AsyncSession, udyam_id: str) -> dict:
    """Preferences, pledges, and headline numbers for the lender dashboard."""
    record = await get_lender_profile(session, udyam_id)
    preferences = (
        LenderPreferences.model_validate(record.preferences)
        if record is not None and record.preferences
        else None
    )

    stmt = (
        select(PoolCommitment)
        .options(selectinload(PoolCommitment.pool))
        .where(PoolCommitment.lender_id == udyam_id)
        .order_by(PoolCommitment.created_at.desc())
    )
    result = await session.execute(stmt)
    commitments = list(result.unique().scalars().all())

    terminal = PoolStatus.terminal_statuses()
    active_pool_ids = {
        c.pool_id for c in commitments if c.pool is not None and c.pool.status not in terminal
    }
    return {
        "udyam_id": udyam_id,
        "preferences": preferences,
        "wallet_address": record.wallet_address if record is not None else None,
        "pledges": [
            {"pool_id": c.pool_id, "amount": c.amount, "timestamp": c.created_at}
            for c in commitments
        ],
        "total_invested": sum((Decimal(c.amount) for c in commitments), Decimal("0")),
        "active_pools": len(active_pool_ids),
        "risk_exposure": RISK_EXPOSURE.get(preferences.risk_appetite, 0) if preferences else 0,
    }


async def suggest_allocation_for_pool(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
) -> AllocationSuggestion | None:
    """AI-suggested pledge for this lender into a pool.

    Returns None if the pool is not visible. Raises PledgeRejectedError if
    the lender has not saved investment preferences yet.
    """
    pool = await get_pool(session, user, pool_id)
    if pool is None:
        return None

    record = await get_lender_profile(session, user.user_id)
    if record is None or not record.preferences:
        raise PledgeRejectedError("Save your investment preferences before requesting a suggestion.")
    preferences = LenderPreferences.model_validate(record.preferences)

    return await suggest_allocation(
        industry=pool.industry.value,
        assessment=pool_assessment(pool),
        loan_amount=Decimal(pool.amount),
        remaining=remaining_amount(pool),
        preferences=preferences,
    )
