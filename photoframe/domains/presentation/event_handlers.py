import logging

from photoframe.core.events.domain_event import SnapshotRebuiltEvent
from photoframe.domains.presentation.broadcaster import SubscriptionBroadcaster


class PresentationEventHandlers:
    def __init__(self, broadcaster: SubscriptionBroadcaster):
        self.broadcaster = broadcaster

    async def handle_snapshot_rebuilt(self, event: SnapshotRebuiltEvent) -> None:
        logging.debug(
            f"Received snapshot with {len(event.snapshot.entries)} photos "
            f"from {event.trigger_count} trigger(s)"
        )
        await self.broadcaster.broadcast(event.snapshot)
