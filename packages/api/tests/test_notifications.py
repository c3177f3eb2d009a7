# This project was developed with assistance from AI tools.
"""Tests for in-app notifications."""

from unittest.mock import MagicMock, patch

import pytest
from db import Notification
from db.enums import NotificationType

from src.services.events import NOTIFICATION
from src.services.notifications import (
    list_notifications,
    mark_all_read,
    mark_read,
    notify,
    publish_notifications,
)

from .factories import make_sequenced_session

USER_ID = "UDYAM-PB-20-0001234"


def _notification(**overrides):
    n = MagicMock(spec=Notification)
    n.id = overrides.get("id", 1)
    n.user_id = overrides.get("user_id", USER_ID)
    n.title = overrides.get("title", "New Pledge!")
    n.message = overrides.get("message", "A lender pledged 50000.")
    n.type = overrides.get("type", NotificationType.SUCCESS)
    n.read = overrides.get("read", False)
    return n


@pytest.mark.asyncio
async def test_list_returns_unread_count():
    items = [_notification(id=2), _notification(id=1, read=True)]
    session = make_sequenced_session(items, 1)

    notifications, unread = await list_notifications(session, USER_ID)

    assert [n.id for n in notifications] == [2, 1]
    assert unread == 1


@pytest.mark.asyncio
async def test_mark_read_other_users_notification_is_none():
    session = make_sequenced_session(None)
    assert await mark_read(session, USER_ID, 99) is None
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_mark_read():
    notification = _notification()
    session = make_sequenced_session(notification)

    result = await mark_read(session, USER_ID, 1)

    assert result.read is True
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_mark_all_read_returns_rowcount():
    session = make_sequenced_session(4)
    assert await mark_all_read(session, USER_ID) == 4
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_notify_commits_then_publishes():
    session = make_sequenced_session()

    with patch("src.services.notifications.publish") as mock_publish:
        notification = await notify(
            session, USER_ID, "Pool Funded", "Your pool is fully funded.", NotificationType.SUCCESS
        )

    assert notification.read is False
    session.add.assert_called_once_with(notification)
    session.commit.assert_awaited_once()
    event = mock_publish.call_args.args[0]
    assert event.type == NOTIFICATION
    assert event.recipient_id == USER_ID
    assert event.data["title"] == "Pool Funded"
    assert event.data["type"] == "SUCCESS"


def test_publish_defaults_missing_type_to_info():
    with patch("src.services.notifications.publish") as mock_publish:
        publish_notifications([_notification(type=None)])
    assert mock_publish.call_args.args[0].data["type"] == NotificationType.INFO.value
