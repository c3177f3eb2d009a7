# This project was developed with assistance from AI tools.
"""Tests for payment transactions and the sandbox checkout."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from db.enums import PaymentKind, PaymentStatus, SandboxAccountStatus, UserRole

from src.schemas.payment import CheckoutRequest
from src.services.payments import (
    BLOCKED_MESSAGE,
    PaymentStateError,
    SandboxAuthError,
    checkout,
    ensure_sandbox_accounts,
    hash_sandbox_password,
    normalize_email,
    update_transaction_status,
    validate_sandbox_account,
)
from src.services.pledges import PledgeRejectedError
from src.services.seed.fixtures import SANDBOX_ACCOUNTS

from .factories import (
    make_mock_pool,
    make_mock_repayment,
    make_mock_sandbox_account,
    make_mock_transaction,
    make_sequenced_session,
    make_user,
)

LENDER_ID = "UDYAM-KA-19-0005678"


def _lender():
    return make_user(UserRole.LENDER, LENDER_ID)


def test_password_hash_is_sha256_hex():
    assert (
        hash_sandbox_password("123456")
        == "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92"
    )


def test_email_normalized():
    assert normalize_email("  TestBuyer1@Sandbox.com ") == "testbuyer1@sandbox.com"


class TestSandboxAccounts:
    @pytest.mark.asyncio
    async def test_accounts_created_when_table_empty(self):
        session = make_sequenced_session(0)

        created = await ensure_sandbox_accounts(session)

        assert created == len(SANDBOX_ACCOUNTS)
        accounts = session.add_all.call_args.args[0]
        assert all(a.password_hash != "123456" for a in accounts)

    @pytest.mark.asyncio
    async def test_existing_accounts_left_alone(self):
        session = make_sequenced_session(3)
        assert await ensure_sandbox_accounts(session) == 0
        session.add_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_valid_credentials(self):
        account = make_mock_sandbox_account()
        session = make_sequenced_session(3, account)

        assert await validate_sandbox_account(session, "lender@sandbox.com", "demo123") is account

    @pytest.mark.asyncio
    async def test_wrong_password(self):
        session = make_sequenced_session(3, make_mock_sandbox_account())
        with pytest.raises(SandboxAuthError, match="Invalid sandbox credentials"):
            await validate_sandbox_account(session, "lender@sandbox.com", "wrong")

    @pytest.mark.asyncio
    async def test_unknown_account(self):
        session = make_sequenced_session(3, None)
        with pytest.raises(SandboxAuthError, match="Invalid sandbox credentials"):
            await validate_sandbox_account(session, "nobody@sandbox.com", "demo123")

    @pytest.mark.asyncio
    async def test_blocked_account(self):
        account = make_mock_sandbox_account(status=SandboxAccountStatus.BLOCKED)
        session = make_sequenced_session(3, account)
        with pytest.raises(SandboxAuthError, match=BLOCKED_MESSAGE):
            await validate_sandbox_account(session, "lender@sandbox.com", "demo123")


class TestTransactions:
    @pytest.mark.asyncio
    async def test_resolve_pending(self):
        tx = make_mock_transaction()
        session = make_sequenced_session(tx)

        result = await update_transaction_status(
            session, _lender(), 1, PaymentStatus.SUCCESS, "ORD-1"
        )

        assert result.payment_status == PaymentStatus.SUCCESS
        assert result.order_id == "ORD-1"

    @pytest.mark.asyncio
    async def test_resolved_transaction_is_final(self):
        tx = make_mock_transaction(payment_status=PaymentStatus.FAILED)
        session = make_sequenced_session(tx)

        with pytest.raises(PaymentStateError, match="already FAILED"):
            await update_transaction_status(
                session, _lender(), 1, PaymentStatus.SUCCESS
            )
        session.commit.assert_not_awaited()


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


def _investment(amount="25000") -> CheckoutRequest:
    return CheckoutRequest(
        kind=PaymentKind.INVESTMENT,
        pool_id="POOL-AAAA11111",
        amount=Decimal(amount),
        sandbox_email="lender@sandbox.com",
        sandbox_password="demo123",
        repayment_duration=12,
    )


def _checkout_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


def _patch_checkout(account, **overrides):
    """Patch the collaborators of checkout() so each test sets only what it needs."""
    targets = {
        "validate_sandbox_account": AsyncMock(return_value=account),
        "create_pending_transaction": AsyncMock(return_value=make_mock_transaction()),
        "get_sandbox_account": AsyncMock(return_value=account),
        "stage_pledge": AsyncMock(return_value=(make_mock_pool(), [])),
        "stage_repayment": AsyncMock(),
        "publish_pledge": AsyncMock(),
        "publish_repayment": AsyncMock(),
        "refresh_credit_score": AsyncMock(return_value=74),
        "write_audit_event": AsyncMock(),
    }
    targets.update(overrides)
    return patch.multiple("src.services.payments", **targets), targets


class TestCheckout:
    @pytest.mark.asyncio
    async def test_rejected_credentials_open_no_transaction(self):
        patcher, mocks = _patch_checkout(
            None, validate_sandbox_account=AsyncMock(side_effect=SandboxAuthError("nope"))
        )
        with patcher:
            with pytest.raises(SandboxAuthError):
                await checkout(_checkout_session(), _lender(), _investment())
        mocks["create_pending_transaction"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insufficient_balance_fails_transaction(self):
        account = make_mock_sandbox_account(balance="100")
        patcher, mocks = _patch_checkout(account)
        with patcher:
            tx = await checkout(_checkout_session(), _lender(), _investment())

        assert tx.payment_status == PaymentStatus.FAILED
        assert tx.failure_reason == "Insufficient sandbox balance"
        mocks["stage_pledge"].assert_not_awaited()
        assert account.balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_rejected_pledge_fails_transaction_and_keeps_balance(self):
        account = make_mock_sandbox_account()
        patcher, _ = _patch_checkout(
            account, stage_pledge=AsyncMock(side_effect=PledgeRejectedError("Pool is CLOSED"))
        )
        with patcher:
            tx = await checkout(_checkout_session(), _lender(), _investment())

        assert tx.payment_status == PaymentStatus.FAILED
        assert tx.failure_reason == "Pool is CLOSED"
        assert account.balance == Decimal("100000")

    @pytest.mark.asyncio
    async def test_missing_pool_fails_transaction(self):
        patcher, _ = _patch_checkout(
            make_mock_sandbox_account(), stage_pledge=AsyncMock(return_value=None)
        )
        with patcher:
            tx = await checkout(_checkout_session(), _lender(), _investment())

        assert tx.failure_reason == "Pool POOL-AAAA11111 not found"

    @pytest.mark.asyncio
    async def test_successful_investment_debits_and_commits_once(self):
        account = make_mock_sandbox_account()
        session = _checkout_session()
        patcher, mocks = _patch_checkout(account)
        with patcher:
            tx = await checkout(session, _lender(), _investment())

        assert tx.payment_status == PaymentStatus.SUCCESS
        assert tx.order_id.startswith("SANDBOX-ORDER-")
        assert account.balance == Decimal("75000")
        session.commit.assert_awaited_once()
        mocks["publish_pledge"].assert_awaited_once()

    @pytest.mark.asyncio
    async def test_successful_repayment_rescores_borrower(self):
        repayment = make_mock_repayment()
        patcher, mocks = _patch_checkout(
            make_mock_sandbox_account(),
            stage_repayment=AsyncMock(return_value=(make_mock_pool(), repayment, [])),
        )
        request = CheckoutRequest(
            kind=PaymentKind.REPAYMENT,
            pool_id="POOL-AAAA11111",
            amount=Decimal("5000"),
            sandbox_email="lender@sandbox.com",
            sandbox_password="demo123",
        )
        with patcher:
            tx = await checkout(_checkout_session(), make_user(), request)

        assert tx.payment_status == PaymentStatus.SUCCESS
        mocks["refresh_credit_score"].assert_awaited_once()
        assert mocks["publish_repayment"].call_args.args[-1] == 74


def test_investment_checkout_requires_duration():
    with pytest.raises(ValueError, match="repayment_duration is required"):
        CheckoutRequest(
            kind=PaymentKind.INVESTMENT,
            pool_id="POOL-AAAA11111",
            amount=Decimal("10"),
            sandbox_email="lender@sandbox.com",
            sandbox_password="demo123",
        )
