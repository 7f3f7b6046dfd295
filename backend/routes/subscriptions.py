"""
Live order feed over WebSocket.

    WS /ws/orders?token=<jwt>

On connect the socket receives the current snapshot of the caller's order
collection (all orders for admins, own orders for clients), then a new
snapshot after every committed change to that collection.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from database import async_session
from domain.constants import ADMIN_ORDERS_COLLECTION, CLIENT_ORDERS_COLLECTION
from domain.enums import UserRole
from middleware.auth import user_id_from_token
from services import order_service, user_service
from services.order_events import OrderEventBus

logger = logging.getLogger(__name__)
router = APIRouter(tags=["subscriptions"])

WS_UNAUTHORIZED = 4401


class OrderFeed:
    """One socket's subscription to an order collection."""

    def __init__(self, websocket, bus: OrderEventBus, collection: str, scope: Optional[int]):
        self.websocket = websocket
        self.bus = bus
        self.collection = collection
        self.scope = scope
        self._lock = asyncio.Lock()
        self._unsubscribe = None

    async def _send(self, orders: list[dict]) -> None:
        await self.websocket.send_json(
            {"event": "snapshot", "collection": self.collection, "orders": orders}
        )

    async def push(self, snapshot: list[dict]) -> None:
        async with self._lock:
            await self._send(snapshot)

    async def open(self, db) -> None:
        """
        Subscribe, then send the initial snapshot.

        Changes published while the snapshot is read and sent wait on the
        lock, so the socket never sees an older snapshot after a newer one.
        """
        async with self._lock:
            self._unsubscribe = self.bus.subscribe(self.collection, self.push)
            orders = await order_service.list_orders(db, client_id=self.scope)
            await self._send([order_service.serialize_order(o) for o in orders])

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


@router.websocket("/ws/orders")
async def orders_feed(websocket: WebSocket, token: str = Query(...)):
    try:
        user_id = user_id_from_token(token)
    except HTTPException as e:
        logger.warning(f"Order feed rejected: {e.detail}")
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    async with async_session() as db:
        user = await user_service.get_user(db, user_id)
    if not user:
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    if UserRole(user.role) == UserRole.ADMIN:
        collection, scope = ADMIN_ORDERS_COLLECTION, None
    else:
        collection, scope = CLIENT_ORDERS_COLLECTION.format(client_id=user.id), user.id

    await websocket.accept()
    feed = OrderFeed(websocket, websocket.app.state.order_events, collection, scope)
    try:
        async with async_session() as db:
            await feed.open(db)
        logger.info(f"Order feed opened: {collection}")
        while True:
            # Clients may send pings; content is ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        feed.close()
        logger.info(f"Order feed closed: {collection}")
