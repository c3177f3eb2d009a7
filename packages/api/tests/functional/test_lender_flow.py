# This project was developed with assistance from AI tools.
"""Functional tests: Lender persona journey.

Lenders browse the full registry, pledge into open pools, manage their
preferences and wallet, and see repayments on pools they funded.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from db.enums import PaymentStatus, PoolStatus

from src.schemas.pool import AllocationSuggestion

from ..factories import make_mock_sandbox_account, make_mock_transaction
from .data_factory import (
    MAHARASHTRA_POOL_ID,
    PUNJAB_POOL_ID,
    all_pools,
    make_lender_profile_karnataka,
    make_pool_maharashtra,
    make_pool_punjab,
    make_repayment_maharashtra,
)
from .mock_db import make_mock_session
from .personas import KARNATAKA_USER_ID, lender_karnataka

pytestmark = pytest.mark.functional


class TestLenderRegistry:
    def test_lender_sees_full_registry(self, make_client):
        client = make_client(lender_karnataka(), make_mock_session(items=all_pools()))

        resp = client.get("/api/pools")
        assert resp.status_code == 200
        data = resp.json()
        assert data["pagination"]["total"] == 2
        assert {p["id"] for p in data["data"]} == {PUNJAB_POOL_ID, MAHARASHTRA_POOL_ID}

    def test_pagination_has_more(self, make_client):
        client = make_client(
            lender_karnataka(), make_mock_session(items=all_pools()[:1], count=2)
        )

        resp = client.get("/api/pools?limit=1")
        assert resp.status_code == 200
        assert resp.json()["pagination"]["has_more"] is True


class TestPledge:
    def test_pledge_into_open_pool(self, make_client):
        pool = make_pool_punjab()
        session = make_mock_session(single=pool)
        client = make_client(lender_karnataka(), session)

        resp = client.post(
            f"/api/pools/{PUNJAB_POOL_ID}/pledges",
            json={"amount": "150000", "repayment_duration": 12},
        )
        assert resp.status_code == 201
        assert pool.total_funded == Decimal("250000")
        assert pool.status == PoolStatus.OPEN
        session.commit.assert_awaited()

    def test_pledge_that_fills_pool_marks_it_funded(self, make_client):
        pool = make_pool_punjab()
        client = make_client(lender_karnataka(), make_mock_session(single=pool))

        resp = client.post(
            f"/api/pools/{PUNJAB_POOL_ID}/pledges",
            json={"amount": "400000", "repayment_duration": 12},
        )
        assert resp.status_code == 201
        assert pool.status == PoolStatus.FUNDED
        assert pool.funded_at is not None

    def test_overfunding_rejected(self, make_client):
        pool = make_pool_punjab()
        session = make_mock_session(single=pool)
        client = make_client(lender_karnataka(), session)

        resp = client.post(
            f"/api/pools/{PUNJAB_POOL_ID}/pledges",
            json={"amount": "400001", "repayment_duration": 12},
        )
        assert resp.status_code == 409
        assert "remaining" in resp.json()["detail"]
        assert pool.total_funded == Decimal("100000")
        session.commit.assert_not_awaited()

    def test_pledge_into_funded_pool_rejected(self, make_client):
        client = make_client(
            lender_karnataka(), make_mock_session(single=make_pool_maharashtra())
        )

        resp = client.post(
            f"/api/pools/{MAHARASHTRA_POOL_ID}/pledges",
            json={"amount": "1000", "repayment_duration": 6},
        )
        assert resp.status_code == 409

    def test_pledge_missing_pool_returns_404(self, make_client):
        client = make_client(lender_karnataka(), make_mock_session(single=None))

        resp = client.post(
            "/api/pools/POOL-MISSING01/pledges",
            json={"amount": "1000", "repayment_duration": 6},
        )
        assert resp.status_code == 404

    def test_pledge_duration_over_limit_rejected(self, make_client):
        client = make_client(lender_karnataka(), make_mock_session(single=make_pool_punjab()))

        resp = client.post(
            f"/api/pools/{PUNJAB_POOL_ID}/pledges",
            json={"amount": "1000", "repayment_duration": 120},
        )
        assert resp.status_code == 409


class TestAllocation:
    def test_allocation_uses_saved_preferences(self, make_client):
        pool = make_pool_punjab()
        session = make_mock_session(single=pool)
        client = make_client(lender_karnataka(), session)
        suggestion = AllocationSuggestion(
            suggested_amount="75000",
            max_lending_capacity="1600000",
            confidence_score=0.8,
            allocation_reason="Low risk manufacturing exposure.",
        )

        with (
            patch(
                "src.services.pledges.get_lender_profile",
                new=AsyncMock(return_value=make_lender_profile_karnataka()),
            ),
            patch(
                "src.services.pledges.suggest_allocation", new=AsyncMock(return_value=suggestion)
            ) as mock_suggest,
        ):
            resp = client.get(f"/api/pools/{PUNJAB_POOL_ID}/allocation")

        assert resp.status_code == 200
        assert Decimal(resp.json()["suggested_amount"]) == Decimal("75000")
        kwargs = mock_suggest.call_args.kwargs
        assert kwargs["remaining"] == Decimal("400000")
        assert kwargs["preferences"].max_ticket_size == Decimal("300000")

    def test_allocation_without_preferences_conflicts(self, make_client):
        client = make_client(lender_karnataka(), make_mock_session(single=make_pool_punjab()))

        with patch(
            "src.services.pledges.get_lender_profile", new=AsyncMock(return_value=None)
        ):
            resp = client.get(f"/api/pools/{PUNJAB_POOL_ID}/allocation")
        assert resp.status_code == 409


class TestLenderDashboard:
    def test_save_preferences(self, make_client):
        profile = make_lender_profile_karnataka()
        session = make_mock_session(single=profile)
        client = make_client(lender_karnataka(), session)

        resp = client.put(
            "/api/lenders/me/preferences", json={"risk_appetite": "Aggressive"}
        )
        assert resp.status_code == 200
        prefs = resp.json()["preferences"]
        assert prefs["risk_appetite"] == "Aggressive"
        # Fields not sent keep their saved value
        assert Decimal(prefs["max_ticket_size"]) == Decimal("300000")
        session.refresh.assert_awaited_once_with(profile)

    def test_link_wallet(self, make_client):
        profile = make_lender_profile_karnataka()
        client = make_client(lender_karnataka(), make_mock_session(single=profile))

        resp = client.put("/api/lenders/me/wallet", json={"wallet_address": "0xNEWWALLET"})
        assert resp.status_code == 200
        assert resp.json()["wallet_address"] == "0xNEWWALLET"

    def test_portfolio(self, make_client):
        pool = make_pool_punjab()
        commitment = pool.commitments[0]
        commitment.pool_id = PUNJAB_POOL_ID
        commitment.pool = pool

        with patch(
            "src.services.pledges.get_lender_profile",
            new=AsyncMock(return_value=make_lender_profile_karnataka()),
        ):
            client = make_client(lender_karnataka(), make_mock_session(items=[commitment]))
            resp = client.get("/api/lenders/me")

        assert resp.status_code == 200
        body = resp.json()
        assert body["udyam_id"] == KARNATAKA_USER_ID
        assert Decimal(body["total_invested"]) == Decimal("100000")
        assert body["active_pools"] == 1
        assert body["risk_exposure"] == 22

    def test_lender_sees_repayments_on_funded_pools(self, make_client):
        client = make_client(
            lender_karnataka(), make_mock_session(items=[make_repayment_maharashtra()])
        )

        resp = client.get(f"/api/pools/{MAHARASHTRA_POOL_ID}/repayments")
        assert resp.status_code == 200
        assert resp.json()["data"][0]["pool_id"] == MAHARASHTRA_POOL_ID


class TestLenderRestrictions:
    def test_lender_cannot_apply_for_loan(self, make_client):
        client = make_client(lender_karnataka(), make_mock_session())

        resp = client.post("/api/pools", json={})
        assert resp.status_code in (403, 422)

    def test_lender_cannot_repay(self, make_client):
        client = make_client(lender_karnataka(), make_mock_session())

        resp = client.post(
            f"/api/pools/{MAHARASHTRA_POOL_ID}/repayments", json={"amount": "1000"}
        )
        assert resp.status_code == 403


class TestLenderPayments:
    def test_sandbox_login(self, make_client):
        client = make_client(
            lender_karnataka(), make_mock_session(single=make_mock_sandbox_account(), count=1)
        )

        resp = client.post(
            "/api/payments/sandbox/login",
            json={"email": "Lender@Sandbox.com ", "password": "demo123"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ACTIVE"
        assert "password_hash" not in body

    def test_sandbox_login_wrong_password(self, make_client):
        client = make_client(
            lender_karnataka(), make_mock_session(single=make_mock_sandbox_account(), count=1)
        )

        resp = client.post(
            "/api/payments/sandbox/login",
            json={"email": "lender@sandbox.com", "password": "nope"},
        )
        assert resp.status_code == 403
        assert "Invalid sandbox credentials" in resp.json()["detail"]

    def test_list_own_transactions(self, make_client):
        tx = make_mock_transaction(user_id=KARNATAKA_USER_ID)
        client = make_client(lender_karnataka(), make_mock_session(items=[tx]))

        resp = client.get("/api/payments/transactions")
        assert resp.status_code == 200
        assert resp.json()["count"] == 1
        assert resp.json()["data"][0]["payment_status"] == "PENDING"

    def test_resolved_transaction_cannot_change(self, make_client):
        tx = make_mock_transaction(payment_status=PaymentStatus.SUCCESS)
        client = make_client(lender_karnataka(), make_mock_session(single=tx))

        resp = client.patch("/api/payments/transactions/1", json={"status": "FAILED"})
        assert resp.status_code == 409
