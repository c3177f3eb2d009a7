# This project was developed with assistance from AI tools.
"""Payment transaction and sandbox checkout schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from db.enums import PaymentKind, PaymentStatus, SandboxAccountStatus
from pydantic import BaseModel, ConfigDict, Field, model_validator


class TransactionCreate(BaseModel):
    """Open a PENDING transaction before handing off to a hosted checkout."""

    amount: Decimal = Field(gt=0)
    loan_id: str
    kind: PaymentKind


class TransactionStatusUpdate(BaseModel):
    """Outcome reported back by the hosted checkout."""

    status: Literal[PaymentStatus.SUCCESS, PaymentStatus.FAILED]
    order_id: str = ""


class TransactionResponse(BaseModel):
    """Single transaction response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    user_email: str | None = None
    amount: Decimal
    loan_id: str
    kind: PaymentKind
    order_id: str
    payment_status: PaymentStatus
    payment_method: str
    failure_reason: str | None = None
    created_at: datetime


class TransactionListResponse(BaseModel):
    """Caller's transactions, newest first."""

    data: list[TransactionResponse]
    count: int


class SandboxLoginRequest(BaseModel):
    """Sandbox checkout credentials."""

    email: str
    password: str


class SandboxAccountResponse(BaseModel):
    """Sandbox account without its password hash."""

    model_config = ConfigDict(from_attributes=True)

    email: str
    user_id: str
    name: str
    status: SandboxAccountStatus
    balance: Decimal


class CheckoutRequest(BaseModel):
    """Run a pledge or repayment through the sandbox checkout."""

    kind: PaymentKind
    pool_id: str
    amount: Decimal = Field(gt=0)
    sandbox_email: str
    sandbox_password: str
    repayment_duration: int | None = Field(
        default=None, ge=1, description="Required for INVESTMENT: repayment duration in months."
    )

    @model_validator(mode="after")
    def _require_duration_for_investment(self) -> "CheckoutRequest":
        if self.kind == PaymentKind.INVESTMENT and self.repayment_duration is None:
            raise ValueError("repayment_duration is required for INVESTMENT checkouts")
        return self
