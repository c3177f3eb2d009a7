# This project was developed with assistance from AI tools.
"""Current-user routes: identity, role selection, unified profile."""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.user import RoleSelectRequest, UserProfileResponse, UserResponse
from ..services.users import InvalidRoleError, get_or_register_user, get_user_profile, select_role
from .borrowers import build_borrower_data
from .lenders import build_lender_data

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Return the caller with their effective role."""
    record = await get_or_register_user(
        session, udyam_id=user.user_id, name=user.name, email=user.email or None
    )
    return UserResponse(
        udyam_id=record.udyam_id,
        name=record.name,
        email=record.email,
        phone_number=record.phone_number,
        role=user.role,
        is_verified=bool(record.is_verified),
    )


@router.post("/me/role", response_model=UserResponse)
async def choose_role(
    body: RoleSelectRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Pick borrower or lender. Admin cannot be self-assigned."""
    try:
        record = await select_role(session, user, body.role)
    except InvalidRoleError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return UserResponse(
        udyam_id=record.udyam_id,
        name=record.name,
        email=record.email,
        phone_number=record.phone_number,
        role=body.role,
        is_verified=bool(record.is_verified),
    )


@router.get("/me/profile", response_model=UserProfileResponse)
async def get_my_profile(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> UserProfileResponse:
    """Unified read of persisted borrower and lender state; either may be null."""
    borrower, lender = await get_user_profile(session, user.user_id)
    return UserProfileResponse(
        udyam_id=user.user_id,
        borrower=build_borrower_data(borrower) if borrower is not None else None,
        lender=build_lender_data(lender) if lender is not None else None,
    )
