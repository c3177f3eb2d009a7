# This project was developed with assistance from AI tools.
"""Payment transactions and the sandbox checkout.

Every checkout opens a PENDING transaction first and then resolves it to
SUCCESS or FAILED. The sandbox account balance is debited in the same
transaction that applies the pledge or repayment, so either both happen
or neither does.
"""

import hashlib
import logging
from decimal import Decimal

from db import SandboxAccount, Transaction
from db.enums import (
    NotificationType,
    PaymentKind,
    PaymentStatus,
    SandboxAccountStatus,
    UserRole,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.payment import CheckoutRequest
from .audit import write_audit_event
from .notifications import add_notification, publish_notifications
from .pledges import PledgeRejectedError, publish_pledge, stage_pledge
from .pools import new_reference
from .repayments import (
    RepaymentRejectedError,
    publish_repayment,
    refresh_credit_score,
    stage_repayment,
)
from .seed.fixtures import SANDBOX_ACCOUNTS

logger = logging.getLogger(__name__)


class SandboxAuthError(ValueError):
    """Raised when sandbox checkout credentials are rejected."""

    pass


class PaymentStateError(ValueError):
    """Raised when a transaction is no longer PENDING."""

    pass


INVALID_CREDENTIALS_MESSAGE = "Invalid sandbox credentials. Try testbuyer1@sandbox.com / 123456"
BLOCKED_MESSAGE = "Account blocked"


def hash_sandbox_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


async def create_pending_transaction(
    session: AsyncSession,
    user: UserContext,
    amount: Decimal,
    loan_id: str,
    kind: PaymentKind,
) -> Transaction:
    """Open a PENDING transaction for the caller."""
    tx = Transaction(
        user_id=user.user_id,
        user_email=user.email or None,
        amount=amount,
        loan_id=loan_id,
        kind=kind,
        order_id="",
        payment_status=PaymentStatus.PENDING,
        payment_method="Sandbox",
    )
    session.add(tx)
    await session.commit()
    await session.refresh(tx)
    logger.info("Transaction %s opened: %s %s on %s", tx.id, kind.value, amount, loan_id)
    return tx


async def get_transaction(
    session: AsyncSession,
    user: UserContext,
    transaction_id: int,
) -> Transaction | None:
    """Return a transaction owned by the caller (admins see all)."""
    stmt = select(Transaction).where(Transaction.id == transaction_id)
    if user.role != UserRole.ADMIN:
        stmt = stmt.where(Transaction.user_id == user.user_id)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def update_transaction_status(
    session: AsyncSession,
    user: UserContext,
    transaction_id: int,
    status: PaymentStatus,
    order_id: str = "",
) -> Transaction | None:
    """Resolve a PENDING transaction.

    Returns None if the transaction is not visible. Raises PaymentStateError
    if it has already been resolved.
    """
    tx = await get_transaction(session, user, transaction_id)
    if tx is None:
        return None
    if tx.payment_status != PaymentStatus.PENDING:
        raise PaymentStateError(
            f"Transaction {transaction_id} is already {tx.payment_status.value}."
        )
    tx.payment_status = status
    if order_id:
        tx.order_id = order_id
    await session.commit()
    return tx


async def list_user_transactions(
    session: AsyncSession,
    user_id: str,
    *,
    limit: int = 100,
) -> list[Transaction]:
    """The user's transactions, newest first."""
    result = await session.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
    )
    return list(result.unique().scalars().all())


# ---------------------------------------------------------------------------
# Sandbox accounts
# ---------------------------------------------------------------------------


def build_sandbox_accounts() -> list[SandboxAccount]:
    return [
        SandboxAccount(
            email=normalize_email(a["email"]),
            password_hash=hash_sandbox_password(a["password"]),
            user_id=a["user_id"],
            name=a["name"],
            status=a["status"],
            balance=a["balance"],
        )
        for a in SANDBOX_ACCOUNTS
    ]


async def ensure_sandbox_accounts(session: AsyncSession) -> int:
    """Create the demo sandbox accounts if the table is empty."""
    existing = (await session.execute(select(func.count(SandboxAccount.id)))).scalar() or 0
    if existing:
        return 0
    accounts = build_sandbox_accounts()
    session.add_all(accounts)
    await session.commit()
    logger.info("Seeded %d sandbox accounts", len(accounts))
    return len(accounts)


async def get_sandbox_account(
    session: AsyncSession,
    email: str,
    *,
    for_update: bool = False,
) -> SandboxAccount | None:
    stmt = select(SandboxAccount).where(SandboxAccount.email == normalize_email(email))
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def validate_sandbox_account(
    session: AsyncSession,
    email: str,
    password: str,
) -> SandboxAccount:
    """Check sandbox checkout credentials.

    Raises SandboxAuthError for unknown accounts, wrong passwords, and
    blocked accounts.
    """
    await ensure_sandbox_accounts(session)
    account = await get_sandbox_account(session, email)
    if account is None or account.password_hash != hash_sandbox_password(password):
        raise SandboxAuthError(INVALID_CREDENTIALS_MESSAGE)
    if account.status == SandboxAccountStatus.BLOCKED:
        raise SandboxAuthError(BLOCKED_MESSAGE)
    return account


async def block_sandbox_account(
    session: AsyncSession,
    user: UserContext,
    email: str,
) -> SandboxAccount | None:
    """Block a sandbox account so it can no longer check out."""
    account = await get_sandbox_account(session, email, for_update=True)
    if account is None:
        return None
    account.status = SandboxAccountStatus.BLOCKED
    await write_audit_event(
        session,
        event_type="sandbox_account_blocked",
        user_id=user.user_id,
        user_role=user.role.value,
        event_data={"email": account.email},
    )
    await session.commit()
    return account


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


async def _fail(
    session: AsyncSession,
    user: UserContext,
    tx: Transaction,
    reason: str,
) -> Transaction:
    tx.payment_status = PaymentStatus.FAILED
    tx.failure_reason = reason
    notification = await add_notification(
        session,
        user.user_id,
        "Payment Failed",
        f"Your payment of ₹{tx.amount} for {tx.loan_id} failed: {reason}",
        NotificationType.WARNING,
    )
    await session.commit()
    publish_notifications([notification])
    logger.warning("Checkout %s failed for %s: %s", tx.id, user.user_id, reason)
    return tx


async def checkout(
    session: AsyncSession,
    user: UserContext,
    request: CheckoutRequest,
) -> Transaction:
    """Run a pledge or repayment through the sandbox checkout.

    Raises SandboxAuthError before any transaction is opened when the
    credentials are rejected. Business failures (insufficient balance, a
    rejected pledge or repayment, a missing pool) resolve the transaction
    to FAILED with the reason instead of raising.
    """
    await validate_sandbox_account(session, request.sandbox_email, request.sandbox_password)
    tx = await create_pending_transaction(
        session, user, request.amount, request.pool_id, request.kind
    )

    account = await get_sandbox_account(session, request.sandbox_email, for_update=True)
    if account is None or account.status == SandboxAccountStatus.BLOCKED:
        return await _fail(session, user, tx, BLOCKED_MESSAGE)
    if Decimal(account.balance) < request.amount:
        return await _fail(session, user, tx, "Insufficient sandbox balance")

    try:
        if request.kind == PaymentKind.INVESTMENT:
            staged = await stage_pledge(
                session, user, request.pool_id, request.amount, request.repayment_duration
            )
        else:
            staged = await stage_repayment(session, user, request.pool_id, request.amount)
    except (PledgeRejectedError, RepaymentRejectedError) as exc:
        return await _fail(session, user, tx, str(exc))
    if staged is None:
        return await _fail(session, user, tx, f"Pool {request.pool_id} not found")

    account.balance = Decimal(account.balance) - request.amount
    tx.payment_status = PaymentStatus.SUCCESS
    tx.order_id = new_reference("SANDBOX-ORDER")
    receipt = await add_notification(
        session,
        user.user_id,
        "Payment Successful",
        f"₹{request.amount} paid for {request.pool_id} (order {tx.order_id}).",
        NotificationType.SUCCESS,
    )
    await write_audit_event(
        session,
        event_type="checkout_completed",
        user_id=user.user_id,
        user_role=user.role.value,
        pool_id=request.pool_id,
        event_data={
            "transaction_id": tx.id,
            "kind": request.kind.value,
            "amount": str(request.amount),
            "order_id": tx.order_id,
        },
    )
    await session.commit()
    logger.info("Checkout %s succeeded: order %s", tx.id, tx.order_id)

    if request.kind == PaymentKind.INVESTMENT:
        _, notifications = staged
        await publish_pledge(session, user, request.pool_id, [*notifications, receipt])
    else:
        _, repayment, notifications = staged
        score = await refresh_credit_score(session, repayment.borrower_id)
        await publish_repayment(session, user, repayment, [*notifications, receipt], score)
    return tx
