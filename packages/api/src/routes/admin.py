# This project was developed with assistance from AI tools.
"""Admin endpoints: platform stats, registry reset, seeding, audit, sandbox."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.admin import (
    AuditChainVerifyResponse,
    AuditEventItem,
    AuditEventsResponse,
    PlatformStatsResponse,
    SeedResponse,
    SeedStatusResponse,
    WipeResponse,
)
from ..schemas.payment import SandboxAccountResponse
from ..services.audit import get_events, verify_audit_chain
from ..services.payments import block_sandbox_account
from ..services.pools import get_platform_stats, wipe_registry
from ..services.seed.seeder import get_seed_status, seed_demo_data

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get("/stats", response_model=PlatformStatsResponse)
async def platform_stats(
    session: AsyncSession = Depends(get_db),
) -> PlatformStatsResponse:
    """Total value locked, pool counts, and average merit score."""
    return PlatformStatsResponse(**await get_platform_stats(session))


@router.post("/wipe", response_model=WipeResponse)
async def wipe(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WipeResponse:
    """Developer reset of the marketplace (users and audit trail are kept)."""
    deleted = await wipe_registry(session, user)
    return WipeResponse(status="wiped", deleted=deleted)


@router.post("/seed", response_model=SeedResponse, status_code=status.HTTP_200_OK)
async def seed_data(
    force: bool = False,
    session: AsyncSession = Depends(get_db),
) -> SeedResponse:
    """Seed demo data. Pass force=true to re-seed.

    Simulated for demonstration purposes -- not real business data.
    """
    result = await seed_demo_data(session, force=force)
    return SeedResponse(**result)


@router.get("/seed/status", response_model=SeedStatusResponse)
async def seed_status(
    session: AsyncSession = Depends(get_db),
) -> SeedStatusResponse:
    """Check if demo data has been seeded."""
    result = await get_seed_status(session)
    return SeedStatusResponse(**result)


@router.get("/audit", response_model=AuditEventsResponse)
async def get_audit_events(
    pool_id: str | None = Query(default=None, description="Only events for this pool"),
    event_type: str | None = Query(default=None, description="Only events of this type"),
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(get_db),
) -> AuditEventsResponse:
    """Query the audit trail, newest first."""
    events = await get_events(session, pool_id=pool_id, event_type=event_type, limit=limit)
    return AuditEventsResponse(
        count=len(events),
        events=[
            AuditEventItem(
                id=e.id,
                timestamp=str(e.timestamp),
                event_type=e.event_type,
                user_id=e.user_id,
                user_role=e.user_role,
                pool_id=e.pool_id,
                event_data=e.event_data,
            )
            for e in events
        ],
    )


@router.get("/audit/verify", response_model=AuditChainVerifyResponse)
async def verify_audit(
    session: AsyncSession = Depends(get_db),
) -> AuditChainVerifyResponse:
    """Verify audit trail hash chain integrity."""
    result = await verify_audit_chain(session)
    return AuditChainVerifyResponse(**result)


@router.post("/sandbox/{email}/block", response_model=SandboxAccountResponse)
async def block_sandbox(
    email: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> SandboxAccountResponse:
    """Block a sandbox checkout account."""
    account = await block_sandbox_account(session, user, email)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sandbox account {email} not found",
        )
    return SandboxAccountResponse.model_validate(account)
