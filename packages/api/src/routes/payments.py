# This project was developed with assistance from AI tools.
"""Payment transactions and the sandbox checkout."""

import logging

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.payment import (
    CheckoutRequest,
    SandboxAccountResponse,
    SandboxLoginRequest,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatusUpdate,
)
from ..services import payments as payment_service
from ..services.payments import PaymentStateError, SandboxAuthError

logger = logging.getLogger(__name__)

router = APIRouter(
    dependencies=[Depends(require_roles(UserRole.ADMIN, UserRole.BORROWER, UserRole.LENDER))]
)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TransactionListResponse:
    """The caller's transactions, newest first."""
    transactions = await payment_service.list_user_transactions(session, user.user_id)
    return TransactionListResponse(
        data=[TransactionResponse.model_validate(t) for t in transactions],
        count=len(transactions),
    )


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    body: TransactionCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Open a PENDING transaction before handing off to a hosted checkout."""
    tx = await payment_service.create_pending_transaction(
        session, user, body.amount, body.loan_id, body.kind
    )
    return TransactionResponse.model_validate(tx)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    tx = await payment_service.get_transaction(session, user, transaction_id)
    if tx is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return TransactionResponse.model_validate(tx)


@router.patch("/transactions/{transaction_id}", response_model=TransactionResponse)
async def resolve_transaction(
    transaction_id: int,
    body: TransactionStatusUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Record the outcome of a PENDING transaction. Resolved transactions return 409."""
    try:
        tx = await payment_service.update_transaction_status(
            session, user, transaction_id, body.status, body.order_id
        )
    except PaymentStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if tx is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return TransactionResponse.model_validate(tx)


@router.post("/sandbox/login", response_model=SandboxAccountResponse)
async def sandbox_login(
    body: SandboxLoginRequest,
    session: AsyncSession = Depends(get_db),
) -> SandboxAccountResponse:
    """Check sandbox credentials and return the account balance."""
    try:
        account = await payment_service.validate_sandbox_account(session, body.email, body.password)
    except SandboxAuthError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return SandboxAccountResponse.model_validate(account)


@router.post("/checkout", response_model=TransactionResponse)
async def checkout(
    body: CheckoutRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """Run a pledge or repayment through the sandbox checkout.

    Rejected credentials return 403. Any other failure still returns the
    transaction, resolved to FAILED with a reason.
    """
    try:
        tx = await payment_service.checkout(session, user, body)
    except SandboxAuthError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return TransactionResponse.model_validate(tx)
