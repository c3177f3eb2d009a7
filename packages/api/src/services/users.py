# This project was developed with assistance from AI tools.
"""User registry, role selection, and unified profile reads.

Users are keyed by UDYAM ID. The identity provider authenticates them; the
first authenticated request registers the user with no role, and the user
then selects whether they act as a borrower or a lender.
"""

import logging

from db import BorrowerProfile, LenderProfile, User
from db.enums import UserRole
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .audit import write_audit_event

logger = logging.getLogger(__name__)


class InvalidRoleError(ValueError):
    """Raised when a user tries to self-assign a role that is not selectable."""

    pass


async def get_user(session: AsyncSession, udyam_id: str) -> User | None:
    """Return the user registered under a UDYAM ID, if any."""
    result = await session.execute(select(User).where(User.udyam_id == udyam_id))
    return result.unique().scalar_one_or_none()


async def get_or_register_user(
    session: AsyncSession,
    *,
    udyam_id: str,
    name: str,
    email: str | None = None,
) -> User:
    """Find the user for a UDYAM ID, registering them on first sight."""
    user = await get_user(session, udyam_id)
    if user is not None:
        return user

    # Concurrent first requests for the same ID race here; the loser's insert is a no-op
    result = await session.execute(
        insert(User)
        .values(
            udyam_id=udyam_id,
            name=name,
            email=email,
            role=UserRole.UNASSIGNED,
            is_verified=True,
        )
        .on_conflict_do_nothing(index_elements=[User.udyam_id])
    )
    await session.commit()
    if result.rowcount:
        logger.info("Registered new user %s", udyam_id)
    return await get_user(session, udyam_id)


async def select_role(
    session: AsyncSession,
    user: UserContext,
    role: UserRole,
) -> User:
    """Persist the caller's chosen role (borrower or lender).

    Switching between borrower and lender is allowed at any time; existing
    pools and pledges are untouched.
    """
    if role not in UserRole.selectable_roles():
        raise InvalidRoleError(
            f"Role '{role.value}' cannot be self-assigned. "
            f"Choose one of: {sorted(r.value for r in UserRole.selectable_roles())}."
        )

    record = await get_or_register_user(
        session, udyam_id=user.user_id, name=user.name, email=user.email or None
    )
    previous = record.role
    record.role = role

    await write_audit_event(
        session,
        event_type="role_selected",
        user_id=user.user_id,
        user_role=role.value,
        event_data={"previous_role": previous.value if previous else None},
    )
    await session.commit()
    return record


async def get_user_profile(
    session: AsyncSession,
    udyam_id: str,
) -> tuple[BorrowerProfile | None, LenderProfile | None]:
    """Unified read of a user's persisted borrower and lender state."""
    borrower = (
        await session.execute(select(BorrowerProfile).where(BorrowerProfile.udyam_id == udyam_id))
    ).unique().scalar_one_or_none()
    lender = (
        await session.execute(select(LenderProfile).where(LenderProfile.udyam_id == udyam_id))
    ).unique().scalar_one_or_none()
    return borrower, lender


async def get_borrower_profile(session: AsyncSession, udyam_id: str) -> BorrowerProfile | None:
    result = await session.execute(
        select(BorrowerProfile).where(BorrowerProfile.udyam_id == udyam_id)
    )
    return result.unique().scalar_one_or_none()


async def save_borrower_draft(
    session: AsyncSession,
    udyam_id: str,
    *,
    profile: dict | None = None,
    finance: dict | None = None,
) -> BorrowerProfile:
    """Merge-save the borrower's business profile and signals for auto-fill."""
    record = await get_borrower_profile(session, udyam_id)
    if record is None:
        record = BorrowerProfile(udyam_id=udyam_id)
        session.add(record)

    if profile is not None:
        record.profile = profile
    if finance is not None:
        record.finance = finance

    await session.commit()
    await session.refresh(record)
    return record
