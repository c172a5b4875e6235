# photoframe/domains/sync/registration.py

import logging

from photoframe.core.events.domain_event import (
    PhotosMutatedEvent,
    SnapshotRebuiltEvent,
    StorageChangeObservedEvent,
)
from photoframe.core.events.event_bus import DomainEventBus
from photoframe.domains.presentation.event_handlers import PresentationEventHandlers
from photoframe.domains.sync.change_aggregator import ChangeAggregator


async def register_sync_handlers(
    event_bus: DomainEventBus,
    aggregator: ChangeAggregator,
    presentation_handlers: PresentationEventHandlers,
) -> None:
    """Wire both change sources into the aggregator and its output into the viewers."""
    logging.info("Abonnerer på sync event handlers...")

    # Two independent change sources, one aggregator
    await event_bus.subscribe(PhotosMutatedEvent, aggregator.handle_photos_mutated)
    await event_bus.subscribe(StorageChangeObservedEvent, aggregator.handle_storage_change_observed)

    await event_bus.subscribe(SnapshotRebuiltEvent, presentation_handlers.handle_snapshot_rebuilt)

    logging.info("Sync event-registrering fuldført.")
