# This project was developed with assistance from AI tools.
"""Pool (loan request) request/response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from db.enums import (
    CommitmentStatus,
    Industry,
    LoanPurpose,
    PoolStatus,
    RiskCategory,
)
from pydantic import BaseModel, ConfigDict, Field, model_validator

from . import Pagination


class BusinessProfile(BaseModel):
    """MSME business profile captured at onboarding."""

    name: str = Field(min_length=1, max_length=255)
    industry: Industry
    years_in_operation: int = Field(ge=0)
    annual_revenue: Decimal = Field(ge=0)
    monthly_avg_revenue: Decimal = Field(ge=0)
    gst_registered: bool
    employee_count: int = Field(ge=0)


class FinancialSignals(BaseModel):
    """Cash-flow signals the credit assessment is based on."""

    six_month_revenue: list[Decimal] = Field(min_length=6, max_length=6)
    avg_monthly_expenses: Decimal = Field(ge=0)
    outstanding_liabilities: Decimal = Field(ge=0)
    existing_loans: bool
    invoice_volume: int = Field(ge=0)
    avg_payment_delay: int = Field(ge=0, description="Average customer payment delay in days.")


class LoanApplication(BaseModel):
    """The loan being requested."""

    amount: Decimal = Field(gt=0)
    purpose: LoanPurpose
    tenure: Literal[6, 12, 18]
    interest_range: tuple[Decimal, Decimal]

    @model_validator(mode="after")
    def _check_interest_range(self) -> "LoanApplication":
        low, high = self.interest_range
        if low < 0 or high < low:
            raise ValueError("interest_range must be [low, high] with 0 <= low <= high")
        return self


class CreditAssessment(BaseModel):
    """AI credit assessment attached to a pool."""

    score: int = Field(ge=0, le=100)
    default_probability: float = Field(ge=0, le=1)
    risk_category: RiskCategory
    suggested_interest_rate: Decimal = Field(ge=0)
    eligible_pool_size: Decimal = Field(ge=0)
    reasoning: str = ""


class AllocationSuggestion(BaseModel):
    """AI-suggested pledge for a given lender and pool."""

    suggested_amount: Decimal = Field(ge=0)
    max_lending_capacity: Decimal = Field(ge=0)
    confidence_score: float = Field(ge=0, le=1)
    allocation_reason: str = ""


class PoolCreate(BaseModel):
    """Borrower submission: profile, signals, and loan request."""

    profile: BusinessProfile
    finance: FinancialSignals
    loan: LoanApplication


class CommitmentResponse(BaseModel):
    """A lender commitment nested inside pool responses."""

    model_config = ConfigDict(from_attributes=True)

    lender_id: str
    lender_name: str
    amount: Decimal
    repayment_duration: int
    status: CommitmentStatus
    created_at: datetime


class PoolResponse(BaseModel):
    """Single pool response."""

    id: str
    borrower_id: str
    borrower_name: str
    profile: BusinessProfile
    finance: FinancialSignals
    loan: LoanApplication
    assessment: CreditAssessment
    total_funded: Decimal
    total_repaid: Decimal
    remaining: Decimal
    status: PoolStatus
    funded_at: datetime | None = None
    created_at: datetime
    commitments: list[CommitmentResponse] = []


class PoolListResponse(BaseModel):
    """Paginated list of pools."""

    data: list[PoolResponse]
    pagination: Pagination


class PledgeRequest(BaseModel):
    """Lender pledge into a pool."""

    amount: Decimal = Field(gt=0)
    repayment_duration: int = Field(ge=1, description="Repayment duration in months.")


class PoolStatusUpdate(BaseModel):
    """Admin-driven pool lifecycle transition."""

    status: PoolStatus
