# This project was developed with assistance from AI tools.
"""Functional tests: Admin persona journey.

Admin browses the full registry, moves pools through their lifecycle, and
uses the admin-only endpoints: platform stats, reset, seeding, and the audit
trail.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from db.enums import PoolStatus

from ..factories import make_mock_sandbox_account
from .data_factory import PUNJAB_POOL_ID, all_pools, make_pool_maharashtra, make_pool_punjab
from .mock_db import make_mock_session
from .personas import admin, borrower_punjab, lender_karnataka

pytestmark = pytest.mark.functional


class TestAdminRegistryAccess:
    def test_list_all_pools(self, make_client):
        client = make_client(admin(), make_mock_session(items=all_pools()))

        resp = client.get("/api/pools")
        assert resp.status_code == 200
        assert resp.json()["pagination"]["total"] == 2

    def test_close_open_pool(self, make_client):
        pool = make_pool_punjab()
        session = make_mock_session(single=pool)
        client = make_client(admin(), session)

        resp = client.post(f"/api/pools/{PUNJAB_POOL_ID}/status", json={"status": "CLOSED"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "CLOSED"
        session.commit.assert_awaited()

    def test_invalid_transition_returns_422(self, make_client):
        pool = make_pool_maharashtra()
        pool.status = PoolStatus.ACTIVE
        client = make_client(admin(), make_mock_session(single=pool))

        resp = client.post(f"/api/pools/{pool.id}/status", json={"status": "OPEN"})
        assert resp.status_code == 422
        assert "Cannot transition" in resp.json()["detail"]

    def test_admin_can_withdraw_any_pool(self, make_client):
        client = make_client(admin(), make_mock_session(single=make_pool_punjab()))

        resp = client.delete(f"/api/pools/{PUNJAB_POOL_ID}")
        assert resp.status_code == 204


class TestAdminOnlyEndpoints:
    def test_platform_stats(self, make_client):
        session = make_mock_session()
        session.execute.return_value.one.return_value = (
            Decimal("400000"),
            2,
            1,
            1,
            75.0,
            Decimal("25000"),
        )
        client = make_client(admin(), session)

        resp = client.get("/api/admin/stats")
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["tvl"]) == Decimal("400000")
        assert body["total_pools"] == 2
        assert body["average_merit_score"] == 75.0

    def test_wipe_registry(self, make_client):
        session = make_mock_session()
        session.execute.return_value.rowcount = 3
        client = make_client(admin(), session)

        resp = client.post("/api/admin/wipe")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "wiped"
        assert body["deleted"]["pools"] == 3
        assert "users" not in body["deleted"]
        session.commit.assert_awaited()

    def test_seed_status_not_seeded(self, make_client):
        client = make_client(admin(), make_mock_session(single=None))

        resp = client.get("/api/admin/seed/status")
        assert resp.status_code == 200
        assert resp.json()["seeded"] is False

    def test_seed(self, make_client):
        client = make_client(admin(), make_mock_session())

        with patch(
            "src.routes.admin.seed_demo_data",
            new=AsyncMock(
                return_value={
                    "status": "seeded",
                    "seeded_at": "2026-03-01T00:00:00+00:00",
                    "config_hash": "abc123",
                    "users": 5,
                    "sandbox_accounts": 3,
                }
            ),
        ) as mock_seed:
            resp = client.post("/api/admin/seed?force=true")

        assert resp.status_code == 200
        assert resp.json()["users"] == 5
        assert mock_seed.call_args.kwargs["force"] is True

    def test_audit_events(self, make_client):
        event = MagicMock()
        event.id = 7
        event.timestamp = "2026-03-01 10:00:00+00:00"
        event.event_type = "pledge_committed"
        event.user_id = "UDYAM-KA-19-0005678"
        event.user_role = "lender"
        event.pool_id = PUNJAB_POOL_ID
        event.event_data = {"amount": "100000"}

        session = make_mock_session()
        session.execute.return_value.scalars.return_value.all.return_value = [event]
        client = make_client(admin(), session)

        resp = client.get(f"/api/admin/audit?pool_id={PUNJAB_POOL_ID}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 1
        assert body["events"][0]["event_type"] == "pledge_committed"

    def test_block_sandbox_account(self, make_client):
        account = make_mock_sandbox_account()
        client = make_client(admin(), make_mock_session(single=account))

        resp = client.post("/api/admin/sandbox/lender@sandbox.com/block")
        assert resp.status_code == 200
        assert resp.json()["status"] == "BLOCKED"

    @pytest.mark.parametrize("persona", [borrower_punjab, lender_karnataka])
    def test_non_admin_denied(self, monkeypatch, make_client, persona):
        from src.core.config import settings

        monkeypatch.setattr(settings, "AUTH_DISABLED", False)

        client = make_client(persona(), make_mock_session())
        resp = client.get("/api/admin/stats")
        assert resp.status_code == 403


class TestAdminNotifications:
    def test_mark_all_read(self, make_client):
        session = make_mock_session()
        session.execute.return_value.rowcount = 4
        client = make_client(admin(), session)

        resp = client.post("/api/notifications/read-all")
        assert resp.status_code == 200
        assert resp.json() == {"updated": 4}

    def test_unknown_notification_returns_404(self, make_client):
        client = make_client(admin(), make_mock_session(single=None))

        resp = client.post("/api/notifications/999/read")
        assert resp.status_code == 404
