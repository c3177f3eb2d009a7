# This project was developed with assistance from AI tools.
"""Pydantic response models for admin endpoints."""

from decimal import Decimal

from pydantic import BaseModel


class AuditEventItem(BaseModel):
    """Single audit event in a query response."""

    id: int
    timestamp: str
    event_type: str
    user_id: str | None = None
    user_role: str | None = None
    pool_id: str | None = None
    event_data: dict | str | None = None


class AuditEventsResponse(BaseModel):
    """Response for GET /api/admin/audit."""

    count: int
    events: list[AuditEventItem]


class AuditChainVerifyResponse(BaseModel):
    """Response for GET /api/admin/audit/verify."""

    status: str
    events_checked: int
    first_break_id: int | None = None


class PlatformStatsResponse(BaseModel):
    """Response for GET /api/admin/stats."""

    tvl: Decimal
    total_pools: int
    active_pools: int
    funded_pools: int
    average_merit_score: float | None = None
    total_repaid: Decimal


class WipeResponse(BaseModel):
    """Response for POST /api/admin/wipe."""

    status: str
    deleted: dict[str, int]


class SeedResponse(BaseModel):
    """Response for POST /api/admin/seed."""

    status: str
    seeded_at: str | None = None
    config_hash: str | None = None
    users: int | None = None
    sandbox_accounts: int | None = None


class SeedStatusResponse(BaseModel):
    """Response for GET /api/admin/seed/status."""

    seeded: bool
    seeded_at: str | None = None
    config_hash: str | None = None
    summary: dict | None = None
