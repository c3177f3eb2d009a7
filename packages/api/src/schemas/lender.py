# This project was developed with assistance from AI tools.
"""Lender preference and portfolio schemas."""

from datetime import datetime
from decimal import Decimal

from db.enums import Industry, LenderExperience, RiskAppetite
from pydantic import BaseModel, Field


class LenderPreferences(BaseModel):
    """Investment thesis captured at lender onboarding."""

    experience: LenderExperience = LenderExperience.BEGINNER
    risk_appetite: RiskAppetite = RiskAppetite.BALANCED
    available_capital: Decimal = Field(default=Decimal("1000000"), ge=0)
    annual_revenue: Decimal = Field(default=Decimal("5000000"), ge=0)
    max_ticket_size: Decimal = Field(default=Decimal("200000"), ge=0)
    preferred_tenure: int = Field(default=12, ge=1)
    expected_return: Decimal = Field(default=Decimal("15"), ge=0)
    preferred_industries: list[Industry] = Field(
        default_factory=lambda: [Industry.MANUFACTURING, Industry.RETAIL]
    )


class WalletUpdate(BaseModel):
    """Link an external wallet address to the lender profile."""

    wallet_address: str = Field(min_length=4, max_length=128)


class PledgeSummary(BaseModel):
    """One pledge in the lender's portfolio."""

    pool_id: str
    amount: Decimal
    timestamp: datetime


class LenderPortfolioResponse(BaseModel):
    """Response for GET /api/lenders/me."""

    udyam_id: str
    preferences: LenderPreferences | None = None
    wallet_address: str | None = None
    pledges: list[PledgeSummary] = []
    total_invested: Decimal = Decimal("0")
    active_pools: int = 0
    risk_exposure: int = 0
