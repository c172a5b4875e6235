import asyncio
import logging
from typing import Optional

from photoframe.core.events.domain_event import (
    PhotosMutatedEvent,
    SnapshotRebuiltEvent,
    StorageChangeObservedEvent,
)
from photoframe.core.events.event_bus import DomainEventBus
from photoframe.core.exceptions import StorageUnavailableError
from photoframe.domains.snapshot.builder import SnapshotBuilder
from photoframe.models import Snapshot


class ChangeAggregator:
    """
    Collapses change signals from the API and the storage watcher into as
    few rebuilds as possible.

    The first trigger opens a coalescing window; every trigger that arrives
    before it closes rides along. When the window closes the snapshot is
    rebuilt from storage once. Triggers arriving during that rebuild schedule
    exactly one more cycle.

    The aggregator is the single writer of the current snapshot. Everyone
    else reads it through ``current_snapshot``.
    """

    def __init__(
        self,
        snapshot_builder: SnapshotBuilder,
        event_bus: DomainEventBus,
        coalesce_window_seconds: float = 0.5,
        skip_unchanged: bool = True,
    ):
        self._builder = snapshot_builder
        self._event_bus = event_bus
        self._window = coalesce_window_seconds
        self._skip_unchanged = skip_unchanged

        self._current = Snapshot.empty()
        self._pending_triggers = 0
        self._cycle_task: Optional[asyncio.Task] = None
        self._rebuild_count = 0

        logging.info(f"ChangeAggregator initialiseret (window: {self._window}s)")

    @property
    def current_snapshot(self) -> Snapshot:
        return self._current

    @property
    def rebuild_count(self) -> int:
        return self._rebuild_count

    @property
    def is_idle(self) -> bool:
        return self._cycle_task is None or self._cycle_task.done()

    async def handle_photos_mutated(self, event: PhotosMutatedEvent) -> None:
        self.request_rebuild(f"api {event.kind.value} ({len(event.names)} file(s))")

    async def handle_storage_change_observed(self, event: StorageChangeObservedEvent) -> None:
        self.request_rebuild(f"watcher {event.change.value}: {event.name}")

    def request_rebuild(self, reason: str) -> None:
        self._pending_triggers += 1
        logging.debug(f"Rebuild requested: {reason}")

        if self.is_idle:
            self._cycle_task = asyncio.create_task(self._run_cycles())

    async def _run_cycles(self) -> None:
        while self._pending_triggers:
            await asyncio.sleep(self._window)
            trigger_count = self._pending_triggers
            self._pending_triggers = 0
            try:
                await self._rebuild_and_publish(trigger_count)
            except Exception as e:
                logging.error(f"Unexpected error in rebuild cycle: {e}", exc_info=True)

    async def rebuild_now(self) -> Optional[Snapshot]:
        """Rebuild immediately, bypassing the coalescing window."""
        return await self._rebuild_and_publish(trigger_count=1)

    async def _rebuild_and_publish(self, trigger_count: int) -> Optional[Snapshot]:
        try:
            snapshot = await self._builder.build_snapshot()
        except StorageUnavailableError as e:
            # Drop this cycle; the next trigger retries
            logging.error(f"Snapshot rebuild failed, cycle dropped: {e}")
            return None

        self._rebuild_count += 1
        previous = self._current

        if self._skip_unchanged and self._rebuild_count > 1 and snapshot.same_entries(previous):
            logging.debug(
                f"Snapshot unchanged after {trigger_count} trigger(s), skipping broadcast"
            )
            return previous

        self._current = snapshot

        logging.info(
            f"Snapshot rebuilt: {len(snapshot.entries)} photos "
            f"({trigger_count} trigger(s) coalesced)"
        )
        await self._event_bus.publish(
            SnapshotRebuiltEvent(snapshot=snapshot, trigger_count=trigger_count)
        )
        return snapshot

    async def wait_idle(self) -> None:
        """Wait until no rebuild cycle is pending or running."""
        while not self.is_idle:
            await asyncio.shield(self._cycle_task)

    async def stop(self) -> None:
        if self._cycle_task and not self._cycle_task.done():
            self._cycle_task.cancel()
            try:
                await self._cycle_task
            except asyncio.CancelledError:
                logging.debug("Aggregator cycle cancelled")
        self._cycle_task = None
        self._pending_triggers = 0
        logging.info("ChangeAggregator stopped")
