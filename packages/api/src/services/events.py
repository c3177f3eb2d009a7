# This project was developed with assistance from AI tools.
"""In-process broker for the live registry feed.

Services publish registry changes after their transaction commits; each
WebSocket subscriber owns a bounded queue. A subscriber that falls behind
loses its oldest queued event rather than stalling publishers.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from db.enums import UserRole

from ..core.config import settings
from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)

POOL_CREATED = "pool_created"
POOL_UPDATED = "pool_updated"
POOL_DELETED = "pool_deleted"
REPAYMENT_RECORDED = "repayment_recorded"
NOTIFICATION = "notification"


@dataclass(frozen=True)
class RegistryEvent:
    """A single registry change.

    ``owner_id`` is the borrower who owns the pool; ``recipient_id`` is set
    only on notification events, which go to that user alone.
    """

    type: str
    data: dict
    pool_id: str | None = None
    owner_id: str | None = None
    recipient_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def visible_to(self, user: UserContext) -> bool:
        """Apply the caller's data scope to this event."""
        if self.type == NOTIFICATION:
            return self.recipient_id == user.user_id
        if user.role == UserRole.UNASSIGNED:
            return False
        scope = user.data_scope
        if scope.full_registry:
            return True
        if scope.own_data_only:
            return self.owner_id is not None and self.owner_id == scope.user_id
        return False

    def to_message(self) -> dict:
        return {
            "type": self.type,
            "pool_id": self.pool_id,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }


class RegistryEventBroker:
    """Fan-out of registry events to subscriber queues."""

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def publish(self, event: RegistryEvent) -> None:
        """Deliver an event to every subscriber without blocking."""
        for queue in list(self._subscribers):
            if queue.full():
                queue.get_nowait()
                logger.warning("Registry subscriber lagging, dropped oldest event")
            queue.put_nowait(event)


_broker = RegistryEventBroker(settings.REGISTRY_EVENT_QUEUE_SIZE)


def get_event_broker() -> RegistryEventBroker:
    """Return the process-wide registry event broker."""
    return _broker


def publish(event: RegistryEvent) -> None:
    _broker.publish(event)
