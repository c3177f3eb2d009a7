# This project was developed with assistance from AI tools.
"""Pool registry service with role-based data scope filtering.

Borrowers see only their own pools; lenders and admins browse the full
registry. Out-of-scope pools are indistinguishable from missing ones.
"""

import logging
import secrets
import string
from datetime import UTC, datetime
from decimal import Decimal

from db import (
    BorrowerProfile,
    LenderProfile,
    Notification,
    Pool,
    PoolCommitment,
    Repayment,
    Transaction,
    User,
)
from db.enums import CommitmentStatus, NotificationType, PoolStatus
from sqlalchemy import delete, false, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from ..schemas.pool import (
    BusinessProfile,
    CommitmentResponse,
    CreditAssessment,
    FinancialSignals,
    LoanApplication,
    PoolCreate,
    PoolResponse,
)
from .audit import write_audit_event
from .events import POOL_CREATED, POOL_DELETED, POOL_UPDATED, RegistryEvent, publish
from .notifications import add_notification, publish_notifications
from .scoring import assess_credit
from .users import get_borrower_profile

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when a pool status transition is not allowed."""

    pass


class PoolConflictError(ValueError):
    """Raised when a pool operation conflicts with the pool's current state."""

    pass


_TERMINAL_STATUSES = PoolStatus.terminal_statuses()
_WITHDRAWABLE_STATUSES = frozenset({PoolStatus.OPEN, PoolStatus.FUNDED})

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def new_reference(prefix: str, length: int = 9) -> str:
    """Return a human-readable id such as ``POOL-7K2M9QX4A``."""
    return f"{prefix}-" + "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(length))


def remaining_amount(pool: Pool) -> Decimal:
    return max(Decimal(pool.amount) - Decimal(pool.total_funded or 0), Decimal("0"))


def pool_assessment(pool: Pool) -> CreditAssessment:
    return CreditAssessment(
        score=pool.score,
        default_probability=pool.default_probability,
        risk_category=pool.risk_category,
        suggested_interest_rate=pool.suggested_interest_rate,
        eligible_pool_size=pool.eligible_pool_size,
        reasoning=pool.reasoning or "",
    )


def to_pool_response(pool: Pool) -> PoolResponse:
    """Flatten a Pool row into the API shape (nested loan and assessment)."""
    return PoolResponse(
        id=pool.id,
        borrower_id=pool.borrower_id,
        borrower_name=pool.borrower_name,
        profile=BusinessProfile.model_validate(pool.profile),
        finance=FinancialSignals.model_validate(pool.finance),
        loan=LoanApplication(
            amount=pool.amount,
            purpose=pool.purpose,
            tenure=pool.tenure_months,
            interest_range=(pool.interest_min, pool.interest_max),
        ),
        assessment=pool_assessment(pool),
        total_funded=pool.total_funded or Decimal("0"),
        total_repaid=pool.total_repaid or Decimal("0"),
        remaining=remaining_amount(pool),
        status=pool.status,
        funded_at=pool.funded_at,
        created_at=pool.created_at,
        commitments=[CommitmentResponse.model_validate(c) for c in pool.commitments],
    )


def pool_event(event_type: str, pool: Pool) -> RegistryEvent:
    if event_type == POOL_DELETED:
        data = {"id": pool.id}
    else:
        data = to_pool_response(pool).model_dump(mode="json")
    return RegistryEvent(
        type=event_type,
        pool_id=pool.id,
        owner_id=pool.borrower_id,
        data=data,
    )


def apply_pool_scope(stmt, user: UserContext):
    """Restrict a Pool query to what the caller may see."""
    scope = user.data_scope
    if scope.full_registry:
        return stmt
    if scope.own_data_only and scope.user_id:
        return stmt.where(Pool.borrower_id == scope.user_id)
    return stmt.where(false())


async def list_pools(
    session: AsyncSession,
    user: UserContext,
    *,
    status: PoolStatus | None = None,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Pool], int]:
    """Return pools visible to the current user, newest first."""
    count_stmt = apply_pool_scope(select(func.count(Pool.id)), user)
    if status is not None:
        count_stmt = count_stmt.where(Pool.status == status)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        select(Pool)
        .options(selectinload(Pool.commitments))
        .order_by(Pool.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    stmt = apply_pool_scope(stmt, user)
    if status is not None:
        stmt = stmt.where(Pool.status == status)
    result = await session.execute(stmt)
    return list(result.unique().scalars().all()), total


async def get_pool(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
    *,
    for_update: bool = False,
) -> Pool | None:
    """Return a single pool if visible to the current user.

    Returns None (which the route maps to 404) for out-of-scope pools
    rather than 403, to avoid leaking existence of resources. Always reloads
    the row so totals read under ``for_update`` are current.
    """
    stmt = (
        select(Pool)
        .options(selectinload(Pool.commitments))
        .where(Pool.id == pool_id)
        .execution_options(populate_existing=True)
    )
    stmt = apply_pool_scope(stmt, user)
    if for_update:
        stmt = stmt.with_for_update(of=Pool)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def submit_loan_application(
    session: AsyncSession,
    user: UserContext,
    payload: PoolCreate,
) -> Pool:
    """Score the borrower's request and open a new pool in the registry.

    Raises PoolConflictError if the borrower already has a pool that is not
    yet repaid or closed.
    """
    # Serializes one borrower's submissions; uq_pools_borrower_live backs this up
    await session.execute(select(User.id).where(User.udyam_id == user.user_id).with_for_update())
    open_stmt = select(func.count(Pool.id)).where(
        Pool.borrower_id == user.user_id,
        Pool.status.notin_(list(_TERMINAL_STATUSES)),
    )
    if ((await session.execute(open_stmt)).scalar() or 0) > 0:
        raise PoolConflictError(
            "You already have an active pool. Withdraw it or repay it before applying again."
        )

    profile, finance, loan = payload.profile, payload.finance, payload.loan
    assessment = await assess_credit(profile, finance, loan)

    pool = Pool(
        id=new_reference("POOL"),
        borrower_id=user.user_id,
        borrower_name=profile.name,
        profile=profile.model_dump(mode="json"),
        finance=finance.model_dump(mode="json"),
        industry=profile.industry,
        amount=loan.amount,
        purpose=loan.purpose,
        tenure_months=loan.tenure,
        interest_min=loan.interest_range[0],
        interest_max=loan.interest_range[1],
        score=assessment.score,
        default_probability=assessment.default_probability,
        risk_category=assessment.risk_category,
        suggested_interest_rate=assessment.suggested_interest_rate,
        eligible_pool_size=assessment.eligible_pool_size,
        reasoning=assessment.reasoning,
        total_funded=Decimal("0"),
        total_repaid=Decimal("0"),
        status=PoolStatus.OPEN,
    )
    session.add(pool)

    record = await get_borrower_profile(session, user.user_id)
    if record is None:
        record = BorrowerProfile(udyam_id=user.user_id)
        session.add(record)
    record.profile = pool.profile
    record.finance = pool.finance
    record.loan = loan.model_dump(mode="json")
    record.assessment = assessment.model_dump(mode="json")
    record.credit_score = assessment.score

    await write_audit_event(
        session,
        event_type="pool_created",
        user_id=user.user_id,
        user_role=user.role.value,
        pool_id=pool.id,
        event_data={
            "amount": str(loan.amount),
            "score": assessment.score,
            "risk_category": assessment.risk_category.value,
        },
    )
    pool_id = pool.id
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise PoolConflictError(
            "You already have an active pool. Withdraw it or repay it before applying again."
        ) from exc
    logger.info("Pool %s opened by %s (score %s)", pool_id, user.user_id, assessment.score)

    created = await get_pool(session, user, pool_id)
    publish(pool_event(POOL_CREATED, created))
    return created


async def delete_pool(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
) -> Pool | None:
    """Withdraw a pool with its commitments and repayments.

    The borrower's business profile and signals are kept for auto-fill;
    only the current loan and assessment are cleared. Lenders with a pledge
    in the pool are notified.
    """
    pool = await get_pool(session, user, pool_id, for_update=True)
    if pool is None:
        return None
    if pool.status not in _WITHDRAWABLE_STATUSES:
        raise PoolConflictError(
            f"Pool in status '{pool.status.value}' cannot be withdrawn. "
            f"Allowed: {sorted(s.value for s in _WITHDRAWABLE_STATUSES)}."
        )

    lender_ids = sorted({c.lender_id for c in pool.commitments})

    await session.execute(delete(Repayment).where(Repayment.pool_id == pool_id))
    await session.execute(delete(PoolCommitment).where(PoolCommitment.pool_id == pool_id))
    await session.execute(delete(Pool).where(Pool.id == pool_id))
    await session.execute(
        update(BorrowerProfile)
        .where(BorrowerProfile.udyam_id == pool.borrower_id)
        .values(loan=None, assessment=None)
    )
    notifications = [
        await add_notification(
            session,
            lender_id,
            "Pool Withdrawn",
            f"{pool.borrower_name} withdrew pool {pool_id}. Your pledge to it was cancelled.",
            NotificationType.WARNING,
        )
        for lender_id in lender_ids
    ]
    await write_audit_event(
        session,
        event_type="pool_deleted",
        user_id=user.user_id,
        user_role=user.role.value,
        pool_id=pool_id,
        event_data={
            "status": pool.status.value,
            "total_funded": str(pool.total_funded),
            "lenders_notified": len(notifications),
        },
    )
    await session.commit()
    logger.info("Pool %s withdrawn by %s", pool_id, user.user_id)

    publish(pool_event(POOL_DELETED, pool))
    publish_notifications(notifications)
    return pool


async def sync_commitment_status(session: AsyncSession, pool_id: str, status: PoolStatus) -> None:
    """Move a pool's commitments along with the pool lifecycle."""
    target = {
        PoolStatus.ACTIVE: CommitmentStatus.REPAYING,
        PoolStatus.REPAID: CommitmentStatus.COMPLETED,
    }.get(status)
    if target is None:
        return
    await session.execute(
        update(PoolCommitment).where(PoolCommitment.pool_id == pool_id).values(status=target)
    )


async def transition_status(
    session: AsyncSession,
    user: UserContext,
    pool_id: str,
    new_status: PoolStatus,
) -> Pool | None:
    """Transition a pool to a new status with validation.

    Returns None if the pool is not found or not accessible.
    Raises InvalidTransitionError if the transition is not allowed.
    """
    pool = await get_pool(session, user, pool_id, for_update=True)
    if pool is None:
        return None

    current = pool.status or PoolStatus.OPEN
    allowed = PoolStatus.valid_transitions().get(current, frozenset())
    if new_status not in allowed:
        raise InvalidTransitionError(
            f"Cannot transition from '{current.value}' to '{new_status.value}'. "
            f"Allowed: {sorted(s.value for s in allowed) if allowed else 'none (terminal status)'}."
        )

    pool.status = new_status
    if new_status == PoolStatus.FUNDED and pool.funded_at is None:
        pool.funded_at = datetime.now(UTC)
    await sync_commitment_status(session, pool_id, new_status)

    await write_audit_event(
        session,
        event_type="pool_status_changed",
        user_id=user.user_id,
        user_role=user.role.value,
        pool_id=pool_id,
        event_data={"from": current.value, "to": new_status.value},
    )
    await session.commit()

    updated = await get_pool(session, user, pool_id)
    publish(pool_event(POOL_UPDATED, updated))
    return updated


async def get_platform_stats(session: AsyncSession) -> dict:
    """Registry-wide totals for the admin dashboard."""
    stmt = select(
        func.coalesce(func.sum(Pool.total_funded), 0),
        func.count(Pool.id),
        func.count(Pool.id).filter(Pool.status == PoolStatus.OPEN),
        func.count(Pool.id).filter(Pool.status.in_([PoolStatus.FUNDED, PoolStatus.ACTIVE])),
        func.avg(Pool.score),
        func.coalesce(func.sum(Pool.total_repaid), 0),
    )
    tvl, total, active, funded, avg_score, repaid = (await session.execute(stmt)).one()
    return {
        "tvl": Decimal(tvl or 0),
        "total_pools": total or 0,
        "active_pools": active or 0,
        "funded_pools": funded or 0,
        "average_merit_score": round(float(avg_score), 1) if avg_score is not None else 0.0,
        "total_repaid": Decimal(repaid or 0),
    }


async def wipe_registry(session: AsyncSession, user: UserContext) -> dict[str, int]:
    """Developer reset: delete all marketplace data except users and audit trail."""
    deleted: dict[str, int] = {}
    for label, model in (
        ("pool_commitments", PoolCommitment),
        ("repayments", Repayment),
        ("pools", Pool),
        ("borrower_profiles", BorrowerProfile),
        ("lender_profiles", LenderProfile),
        ("transactions", Transaction),
        ("notifications", Notification),
    ):
        result = await session.execute(delete(model))
        deleted[label] = result.rowcount or 0

    await write_audit_event(
        session,
        event_type="registry_wiped",
        user_id=user.user_id,
        user_role=user.role.value,
        event_data=deleted,
    )
    await session.commit()
    logger.warning("Registry wiped by %s: %s", user.user_id, deleted)
    return deleted
