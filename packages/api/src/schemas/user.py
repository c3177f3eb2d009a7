# This project was developed with assistance from AI tools.
"""User, role selection, and profile schemas."""

from datetime import datetime

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict

from .lender import LenderPreferences
from .pool import BusinessProfile, CreditAssessment, FinancialSignals, LoanApplication


class UserResponse(BaseModel):
    """The caller as the platform knows them."""

    model_config = ConfigDict(from_attributes=True)

    udyam_id: str
    name: str
    email: str | None = None
    phone_number: str | None = None
    role: UserRole
    is_verified: bool = False


class RoleSelectRequest(BaseModel):
    """Role picked after sign-in."""

    role: UserRole


class BorrowerDraft(BaseModel):
    """Borrower profile and signals saved for auto-fill."""

    profile: BusinessProfile | None = None
    finance: FinancialSignals | None = None


class PersistedBorrowerData(BaseModel):
    """Borrower state as stored for the user."""

    profile: BusinessProfile | None = None
    finance: FinancialSignals | None = None
    loan: LoanApplication | None = None
    assessment: CreditAssessment | None = None
    credit_score: int | None = None
    last_updated: datetime | None = None


class PersistedLenderData(BaseModel):
    """Lender state as stored for the user."""

    preferences: LenderPreferences | None = None
    wallet_address: str | None = None
    last_updated: datetime | None = None


class UserProfileResponse(BaseModel):
    """Unified profile read: either side may be absent."""

    udyam_id: str
    borrower: PersistedBorrowerData | None = None
    lender: PersistedLenderData | None = None
