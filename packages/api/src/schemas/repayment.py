# This project was developed with assistance from AI tools.
"""Repayment request/response schemas."""

from datetime import datetime
from decimal import Decimal

from db.enums import RepaymentStatus
from pydantic import BaseModel, ConfigDict, Field


class RepaymentCreate(BaseModel):
    """Borrower repayment against their pool."""

    amount: Decimal = Field(gt=0)


class RepaymentResponse(BaseModel):
    """Single repayment response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    pool_id: str
    borrower_id: str
    amount: Decimal
    due_date: datetime
    status: RepaymentStatus
    paid_at: datetime | None = None


class RepaymentListResponse(BaseModel):
    """Repayments visible to the caller, newest payment first."""

    data: list[RepaymentResponse]
    count: int
