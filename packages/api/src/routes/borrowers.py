# This project was developed with assistance from AI tools.
"""Borrower profile routes (auto-fill draft)."""

from db import BorrowerProfile, get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.user import BorrowerDraft, PersistedBorrowerData
from ..services.users import save_borrower_draft

router = APIRouter()


def build_borrower_data(record: BorrowerProfile) -> PersistedBorrowerData:
    return PersistedBorrowerData(
        profile=record.profile,
        finance=record.finance,
        loan=record.loan,
        assessment=record.assessment,
        credit_score=record.credit_score,
        last_updated=record.updated_at,
    )


@router.put(
    "/me/profile",
    response_model=PersistedBorrowerData,
    dependencies=[Depends(require_roles(UserRole.BORROWER, UserRole.ADMIN))],
)
async def save_draft(
    body: BorrowerDraft,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PersistedBorrowerData:
    """Save the business profile and financial signals for later auto-fill."""
    record = await save_borrower_draft(
        session,
        user.user_id,
        profile=body.profile.model_dump(mode="json") if body.profile else None,
        finance=body.finance.model_dump(mode="json") if body.finance else None,
    )
    return build_borrower_data(record)
