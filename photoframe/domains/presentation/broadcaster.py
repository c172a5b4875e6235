import asyncio
import json
import logging
from typing import Callable, List, Optional

from fastapi import WebSocket

from photoframe.models import Snapshot

PHOTOS_UPDATED = "photos_updated"


def snapshot_message(snapshot: Snapshot) -> str:
    return json.dumps({"type": PHOTOS_UPDATED, "data": snapshot.to_payload()})


class Subscription:
    """A live viewer connection and the last snapshot delivered to it."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.last_snapshot: Optional[Snapshot] = None

    def has_seen(self, snapshot: Snapshot) -> bool:
        return self.last_snapshot is not None and self.last_snapshot.same_entries(snapshot)


class SubscriptionBroadcaster:
    """
    Manages viewer WebSocket connections and pushes snapshots to them.

    Delivery is fire-and-forget per connection: a connection that fails or
    times out is dropped without holding up the rest.
    """

    def __init__(
        self,
        latest_snapshot: Callable[[], Snapshot],
        send_timeout_seconds: float = 5.0,
    ):
        self._latest_snapshot = latest_snapshot
        self._send_timeout = send_timeout_seconds
        self._subscriptions: List[Subscription] = []
        logging.info("SubscriptionBroadcaster initialiseret")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def subscribe(self, websocket: WebSocket) -> Subscription:
        """
        Accept a connection and deliver the current snapshot to it before it
        joins the broadcast set.
        """
        await websocket.accept()
        subscription = Subscription(websocket)

        initial = self._latest_snapshot()
        await self._send(subscription, initial)

        self._subscriptions.append(subscription)
        logging.info(f"Viewer connected. Total connections: {len(self._subscriptions)}")

        # A rebuild may have been published while the first send was in flight
        latest = self._latest_snapshot()
        if not subscription.has_seen(latest):
            await self._deliver(subscription, latest)

        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
        logging.info(f"Viewer disconnected. Total connections: {len(self._subscriptions)}")

    async def broadcast(self, snapshot: Snapshot) -> int:
        """
        Send ``snapshot`` to every subscription that hasn't seen it yet.

        Returns the number of connections it was delivered to.
        """
        targets = [sub for sub in self._subscriptions if not sub.has_seen(snapshot)]
        if not targets:
            return 0

        results = await asyncio.gather(*(self._deliver(sub, snapshot) for sub in targets))
        delivered = sum(1 for ok in results if ok)
        logging.info(
            f"Broadcasting update: {len(snapshot.entries)} photos "
            f"to {delivered}/{len(targets)} viewer(s)"
        )
        return delivered

    async def _deliver(self, subscription: Subscription, snapshot: Snapshot) -> bool:
        try:
            await self._send(subscription, snapshot)
            return True
        except Exception as e:
            logging.warning(f"Fejl ved sending til viewer, dropping connection: {e!r}")
            self.unsubscribe(subscription)
            await self._close(subscription)
            return False

    async def _close(self, subscription: Subscription) -> None:
        # A dropped viewer must see the disconnect, so it reconnects and resyncs
        try:
            await asyncio.wait_for(subscription.websocket.close(), timeout=self._send_timeout)
        except Exception as e:
            logging.debug(f"Could not close dropped viewer connection: {e!r}")

    async def _send(self, subscription: Subscription, snapshot: Snapshot) -> None:
        await asyncio.wait_for(
            subscription.websocket.send_text(snapshot_message(snapshot)),
            timeout=self._send_timeout,
        )
        subscription.last_snapshot = snapshot
