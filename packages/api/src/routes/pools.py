# This project was developed with assistance from AI tools.
"""Pool registry routes with RBAC enforcement."""

from db import get_db
from db.enums import PoolStatus, UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.pool import (
    AllocationSuggestion,
    PledgeRequest,
    PoolCreate,
    PoolListResponse,
    PoolResponse,
    PoolStatusUpdate,
)
from ..schemas.repayment import RepaymentCreate, RepaymentListResponse, RepaymentResponse
from ..services import pools as pool_service
from ..services.pledges import PledgeRejectedError, invest_in_pool, suggest_allocation_for_pool
from ..services.pools import InvalidTransitionError, PoolConflictError, to_pool_response
from ..services.repayments import RepaymentRejectedError, list_repayments, submit_repayment

router = APIRouter()

_REGISTRY_ROLES = (UserRole.ADMIN, UserRole.BORROWER, UserRole.LENDER)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pool not found")


@router.get(
    "",
    response_model=PoolListResponse,
    dependencies=[Depends(require_roles(*_REGISTRY_ROLES))],
)
async def list_pools(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    filter_status: PoolStatus | None = Query(default=None, alias="status"),
) -> PoolListResponse:
    """List pools visible to the caller, newest first.

    Borrowers see only their own pools; lenders and admins see the registry.
    """
    pools, total = await pool_service.list_pools(
        session, user, status=filter_status, offset=offset, limit=limit
    )
    return PoolListResponse(
        data=[to_pool_response(p) for p in pools],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.post(
    "",
    response_model=PoolResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.BORROWER))],
)
async def create_pool(
    body: PoolCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PoolResponse:
    """Submit a loan request; it is credit-scored and opened in the registry."""
    try:
        pool = await pool_service.submit_loan_application(session, user, body)
    except PoolConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return to_pool_response(pool)


@router.get(
    "/{pool_id}",
    response_model=PoolResponse,
    dependencies=[Depends(require_roles(*_REGISTRY_ROLES))],
)
async def get_pool(
    pool_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PoolResponse:
    """Get a single pool. Returns 404 for out-of-scope pools."""
    pool = await pool_service.get_pool(session, user, pool_id)
    if pool is None:
        raise _not_found()
    return to_pool_response(pool)


@router.delete(
    "/{pool_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(UserRole.BORROWER, UserRole.ADMIN))],
)
async def delete_pool(
    pool_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> None:
    """Withdraw a pool that is still OPEN or FUNDED."""
    try:
        pool = await pool_service.delete_pool(session, user, pool_id)
    except PoolConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if pool is None:
        raise _not_found()


@router.post(
    "/{pool_id}/pledges",
    response_model=PoolResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.LENDER))],
)
async def pledge(
    pool_id: str,
    body: PledgeRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PoolResponse:
    """Pledge capital into an open pool without going through checkout."""
    try:
        pool = await invest_in_pool(session, user, pool_id, body.amount, body.repayment_duration)
    except PledgeRejectedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if pool is None:
        raise _not_found()
    return to_pool_response(pool)


@router.get(
    "/{pool_id}/allocation",
    response_model=AllocationSuggestion,
    dependencies=[Depends(require_roles(UserRole.LENDER))],
)
async def allocation(
    pool_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> AllocationSuggestion:
    """AI-suggested pledge for the caller based on their saved preferences."""
    try:
        suggestion = await suggest_allocation_for_pool(session, user, pool_id)
    except PledgeRejectedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if suggestion is None:
        raise _not_found()
    return suggestion


@router.post(
    "/{pool_id}/repayments",
    response_model=RepaymentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.BORROWER))],
)
async def repay(
    pool_id: str,
    body: RepaymentCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RepaymentResponse:
    """Record a repayment on the caller's funded pool."""
    try:
        repayment = await submit_repayment(session, user, pool_id, body.amount)
    except RepaymentRejectedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if repayment is None:
        raise _not_found()
    return RepaymentResponse.model_validate(repayment)


@router.get(
    "/{pool_id}/repayments",
    response_model=RepaymentListResponse,
    dependencies=[Depends(require_roles(*_REGISTRY_ROLES))],
)
async def pool_repayments(
    pool_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RepaymentListResponse:
    """Repayments on a pool, most recent first."""
    repayments = await list_repayments(session, user, pool_id=pool_id)
    return RepaymentListResponse(
        data=[RepaymentResponse.model_validate(r) for r in repayments],
        count=len(repayments),
    )


@router.post(
    "/{pool_id}/status",
    response_model=PoolResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def change_status(
    pool_id: str,
    body: PoolStatusUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PoolResponse:
    """Move a pool along its lifecycle. Admin only."""
    try:
        pool = await pool_service.transition_status(session, user, pool_id, body.status)
    except InvalidTransitionError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    if pool is None:
        raise _not_found()
    return to_pool_response(pool)
