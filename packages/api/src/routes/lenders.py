# This project was developed with assistance from AI tools.
"""Lender dashboard routes: portfolio, preferences, wallet."""

from db import LenderProfile, get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.lender import LenderPortfolioResponse, LenderPreferences, WalletUpdate
from ..schemas.user import PersistedLenderData
from ..services.pledges import get_lender_portfolio, save_lender_preferences, set_wallet

router = APIRouter(dependencies=[Depends(require_roles(UserRole.LENDER, UserRole.ADMIN))])


def build_lender_data(record: LenderProfile) -> PersistedLenderData:
    return PersistedLenderData(
        preferences=record.preferences,
        wallet_address=record.wallet_address,
        last_updated=record.updated_at,
    )


@router.get("/me", response_model=LenderPortfolioResponse)
async def my_portfolio(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> LenderPortfolioResponse:
    """Preferences, pledges, total invested, and risk exposure."""
    return LenderPortfolioResponse(**await get_lender_portfolio(session, user.user_id))


@router.put("/me/preferences", response_model=PersistedLenderData)
async def update_preferences(
    body: LenderPreferences,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PersistedLenderData:
    """Merge-save investment preferences; omitted fields keep their saved value."""
    record = await save_lender_preferences(session, user.user_id, body)
    return build_lender_data(record)


@router.put("/me/wallet", response_model=PersistedLenderData)
async def update_wallet(
    body: WalletUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PersistedLenderData:
    """Link a wallet address."""
    record = await set_wallet(session, user.user_id, body.wallet_address)
    return build_lender_data(record)
