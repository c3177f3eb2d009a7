# This project was developed with assistance from AI tools.
"""WebSocket endpoint for the live pool registry.

Protocol:
  Client connects:  /api/registry/ws?token=<jwt>
  Server sends:     {"type": "snapshot", "data": [pool, ...]} (once, on connect)
                    {"type": "pool_created" | "pool_updated" | "pool_deleted"
                           | "repayment_recorded" | "notification",
                     "pool_id": ..., "timestamp": ..., "data": {...}}

Events are filtered by the caller's data scope: borrowers only hear about
their own pools, and notifications go to their recipient alone.
"""

import asyncio
import logging

import jwt as pyjwt
from db import SessionLocal
from db.enums import UserRole
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from ..core.config import settings
from ..middleware.auth import _DISABLED_USER, authenticate_token
from ..schemas.auth import UserContext
from ..services.events import get_event_broker
from ..services.pools import list_pools, to_pool_response

logger = logging.getLogger(__name__)

router = APIRouter()


async def authenticate_websocket(ws: WebSocket) -> UserContext | None:
    """Validate the ``?token=<jwt>`` query param on an already-accepted WebSocket.

    Returns ``None`` (and closes the WS) when authentication or authorization fails.
    """
    if settings.AUTH_DISABLED:
        return _DISABLED_USER

    token = ws.query_params.get("token")
    if not token:
        await ws.close(code=4001, reason="Missing authentication token")
        return None

    try:
        async with SessionLocal() as session:
            user = await authenticate_token(session, token)
    except pyjwt.InvalidTokenError as exc:
        logger.warning("WebSocket auth failed: %s", exc)
        await ws.close(code=4001, reason="Invalid or expired token")
        return None
    except HTTPException as exc:
        logger.warning("WebSocket auth unavailable: %s", exc.detail)
        await ws.close(code=1011, reason="Authentication service unavailable")
        return None

    if user.role == UserRole.UNASSIGNED:
        logger.warning("WebSocket RBAC denied: user=%s has no role", user.user_id)
        await ws.close(code=4003, reason="Select a role first")
        return None
    return user


async def _send_snapshot(ws: WebSocket, user: UserContext) -> None:
    async with SessionLocal() as session:
        pools, _ = await list_pools(session, user, limit=settings.REGISTRY_SNAPSHOT_LIMIT)
        data = [to_pool_response(p).model_dump(mode="json") for p in pools]
    await ws.send_json({"type": "snapshot", "data": data})


async def _wait_for_disconnect(ws: WebSocket) -> None:
    """Consume client frames until the socket closes; the feed is one-way."""
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        return


async def _forward_events(ws: WebSocket, user: UserContext, queue: asyncio.Queue) -> None:
    while True:
        event = await queue.get()
        if event.visible_to(user):
            await ws.send_json(event.to_message())


@router.websocket("/ws")
async def registry_websocket(ws: WebSocket):
    """Stream registry changes visible to the caller."""
    await ws.accept()

    user = await authenticate_websocket(ws)
    if user is None:
        return

    broker = get_event_broker()
    # Subscribe before the snapshot so nothing committed in between is missed
    queue = broker.subscribe()
    tasks: list[asyncio.Task] = []
    try:
        await _send_snapshot(ws, user)
        tasks = [
            asyncio.create_task(_wait_for_disconnect(ws)),
            asyncio.create_task(_forward_events(ws, user, queue)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                raise exc
    except WebSocketDisconnect:
        logger.debug("Registry client %s left before the snapshot was sent", user.user_id)
    finally:
        for task in tasks:
            task.cancel()
        broker.unsubscribe(queue)
        logger.debug("Registry socket closed for %s", user.user_id)
