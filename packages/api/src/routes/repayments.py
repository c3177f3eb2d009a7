# This project was developed with assistance from AI tools.
"""Repayment history across the caller's pools."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.repayment import RepaymentListResponse, RepaymentResponse
from ..services.repayments import list_repayments

router = APIRouter()


@router.get(
    "",
    response_model=RepaymentListResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.BORROWER, UserRole.LENDER))],
)
async def my_repayments(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RepaymentListResponse:
    """Borrowers see their own repayments, lenders those on pools they funded."""
    repayments = await list_repayments(session, user)
    return RepaymentListResponse(
        data=[RepaymentResponse.model_validate(r) for r in repayments],
        count=len(repayments),
    )
