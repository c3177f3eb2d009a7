# This project was developed with assistance from AI tools.
"""In-app notifications.

Notifications are written inside the caller's transaction with
``add_notification`` and pushed to the live feed once that transaction
commits (``publish_notifications``). ``notify`` does both for one-off
messages.
"""

import logging

from db import Notification
from db.enums import NotificationType
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .events import NOTIFICATION, RegistryEvent, publish

logger = logging.getLogger(__name__)


async def add_notification(
    session: AsyncSession,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
) -> Notification:
    """Stage a notification in the current transaction (no commit)."""
    notification = Notification(user_id=user_id, title=title, message=message, type=type, read=False)
    session.add(notification)
    await session.flush()
    return notification


def publish_notifications(notifications: list[Notification]) -> None:
    """Push committed notifications to their recipients' live feeds."""
    for n in notifications:
        publish(
            RegistryEvent(
                type=NOTIFICATION,
                recipient_id=n.user_id,
                data={
                    "id": n.id,
                    "title": n.title,
                    "message": n.message,
                    "type": n.type.value if n.type else NotificationType.INFO.value,
                },
            )
        )


async def notify(
    session: AsyncSession,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
) -> Notification:
    """Persist a notification and publish it."""
    notification = await add_notification(session, user_id, title, message, type)
    await session.commit()
    publish_notifications([notification])
    return notification


async def list_notifications(
    session: AsyncSession,
    user_id: str,
    *,
    unread_only: bool = False,
    limit: int = 50,
) -> tuple[list[Notification], int]:
    """Return the user's notifications newest first, plus their unread count."""
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    result = await session.execute(stmt)
    notifications = list(result.scalars().all())

    count_stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id, Notification.read.is_(False)
    )
    unread = (await session.execute(count_stmt)).scalar() or 0
    return notifications, unread


async def mark_read(
    session: AsyncSession,
    user_id: str,
    notification_id: int,
) -> Notification | None:
    """Mark one of the user's notifications read. None if it is not theirs."""
    result = await session.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        return None
    notification.read = True
    await session.commit()
    return notification


async def mark_all_read(session: AsyncSession, user_id: str) -> int:
    """Mark every unread notification for the user read; returns the count."""
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await session.commit()
    return result.rowcount or 0
