# This project was developed with assistance from AI tools.
"""In-app notification routes."""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.notification import NotificationListResponse, NotificationResponse
from ..services import notifications as notification_service

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
) -> NotificationListResponse:
    notifications, unread = await notification_service.list_notifications(
        session, user.user_id, unread_only=unread_only, limit=limit
    )
    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in notifications],
        unread=unread,
    )


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = await notification_service.mark_read(session, user.user_id, notification_id)
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    return NotificationResponse.model_validate(notification)


@router.post("/read-all")
async def mark_all_read(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> dict:
    """Mark every unread notification read."""
    updated = await notification_service.mark_all_read(session, user.user_id)
    return {"updated": updated}
