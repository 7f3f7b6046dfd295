"""
Tests for the live order feed.

Tests: OrderFeed subscribes before reading its initial snapshot, orders
concurrent pushes after it, scopes clients to their own orders, unsubscribes
on close.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import asyncio

import pytest

from domain.constants import ADMIN_ORDERS_COLLECTION, CLIENT_ORDERS_COLLECTION
from routes.subscriptions import OrderFeed
from services.order_events import OrderEventBus


class _RecordingSocket:
    """Collects sent messages; optionally runs a hook before the first send."""

    def __init__(self, before_first_send=None):
        self.sent = []
        self._before_first_send = before_first_send

    async def send_json(self, message):
        if not self.sent and self._before_first_send:
            self._before_first_send()
        self.sent.append(message)


class TestOrderFeed:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_initial_snapshot(self, db_session, make_order):
        order = await make_order()
        socket = _RecordingSocket()
        feed = OrderFeed(socket, OrderEventBus(), ADMIN_ORDERS_COLLECTION, None)

        await feed.open(db_session)

        assert len(socket.sent) == 1
        message = socket.sent[0]
        assert message["event"] == "snapshot"
        assert message["collection"] == ADMIN_ORDERS_COLLECTION
        assert [o["id"] for o in message["orders"]] == [order.id]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_change_during_initial_snapshot_is_not_lost(self, db_session, make_order):
        await make_order()
        bus = OrderEventBus()
        publishes = []

        def publish_newer():
            # Already subscribed while the initial snapshot goes out
            assert bus.subscriber_count(ADMIN_ORDERS_COLLECTION) == 1
            publishes.append(
                asyncio.ensure_future(bus.publish(ADMIN_ORDERS_COLLECTION, [{"id": 99}]))
            )

        socket = _RecordingSocket(before_first_send=publish_newer)
        feed = OrderFeed(socket, bus, ADMIN_ORDERS_COLLECTION, None)

        await feed.open(db_session)
        delivered = await asyncio.gather(*publishes)

        assert delivered == [1]
        assert len(socket.sent) == 2
        assert socket.sent[0]["orders"][0]["id"] != 99
        assert socket.sent[1]["orders"] == [{"id": 99}]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_client_scope(self, db_session, make_order, client_user, other_client):
        mine = await make_order()
        await make_order(client=other_client)
        collection = CLIENT_ORDERS_COLLECTION.format(client_id=client_user.id)
        socket = _RecordingSocket()
        feed = OrderFeed(socket, OrderEventBus(), collection, client_user.id)

        await feed.open(db_session)

        assert [o["id"] for o in socket.sent[0]["orders"]] == [mine.id]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, db_session, make_order):
        bus = OrderEventBus()
        socket = _RecordingSocket()
        feed = OrderFeed(socket, bus, ADMIN_ORDERS_COLLECTION, None)

        await feed.open(db_session)
        assert bus.subscriber_count(ADMIN_ORDERS_COLLECTION) == 1
        feed.close()
        feed.close()

        assert bus.subscriber_count(ADMIN_ORDERS_COLLECTION) == 0
        assert await bus.publish(ADMIN_ORDERS_COLLECTION, []) == 0
        assert len(socket.sent) == 1
