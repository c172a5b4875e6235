"""
Polling watcher for changes made to the photo directory outside the API.

Polling is used instead of native notifications because inotify events do
not cross Docker bind mounts on Windows/macOS hosts.
"""
import asyncio
import logging
from typing import Optional, Set

from photoframe.core.events.domain_event import StorageChange, StorageChangeObservedEvent
from photoframe.core.events.event_bus import DomainEventBus
from photoframe.core.exceptions import StorageUnavailableError
from photoframe.storage.photo_storage import PhotoStorage
from photoframe.utils.naming import is_hidden_name


class StorageWatcher:
    def __init__(
        self,
        storage: PhotoStorage,
        event_bus: DomainEventBus,
        polling_interval_seconds: float = 1.0,
    ):
        self._storage = storage
        self._event_bus = event_bus
        self._interval = polling_interval_seconds
        self._known_names: Optional[Set[str]] = None
        self._running = False
        self._watch_task: Optional[asyncio.Task] = None

        logging.info(f"StorageWatcher initialized - monitoring: {storage.root}")
        logging.info(f"Polling interval: {self._interval}s")

    @property
    def is_running(self) -> bool:
        return self._running

    async def start_watching(self) -> None:
        if self._running:
            logging.warning("Storage watcher is already running")
            return

        self._running = True
        # Existing files are the baseline, not changes
        await self._seed_baseline()
        self._watch_task = asyncio.create_task(self._watch_loop())
        logging.info("Storage watcher startet som background task")

    async def stop_watching(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._watch_task and not self._watch_task.done():
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                logging.debug("Watcher task cancelled successfully")
        self._watch_task = None
        logging.info("Storage watcher stopped")

    async def _seed_baseline(self) -> None:
        try:
            self._known_names = await self._visible_names()
        except StorageUnavailableError as e:
            logging.warning(f"Could not read baseline listing: {e}")
            self._known_names = None

    async def _watch_loop(self) -> None:
        try:
            while self._running:
                try:
                    await self.poll_once()
                except StorageUnavailableError as e:
                    logging.warning(f"Storage poll failed: {e}")
                except Exception as e:
                    logging.error(f"Error in storage watcher iteration: {e}", exc_info=True)
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            logging.info("Storage watcher loop cancelled")
            raise

    async def poll_once(self) -> int:
        """
        Compare the directory against the last poll and publish one event
        per added or removed file. Returns the number of changes seen.
        """
        current = await self._visible_names()

        if self._known_names is None:
            # Baseline was unavailable; adopt this listing without events
            self._known_names = current
            return 0

        added = sorted(current - self._known_names)
        removed = sorted(self._known_names - current)
        self._known_names = current

        for name in added:
            logging.info(f"File added (watcher): {name}")
            await self._event_bus.publish(
                StorageChangeObservedEvent(change=StorageChange.ADDED, name=name)
            )
        for name in removed:
            logging.info(f"File removed (watcher): {name}")
            await self._event_bus.publish(
                StorageChangeObservedEvent(change=StorageChange.REMOVED, name=name)
            )

        return len(added) + len(removed)

    async def _visible_names(self) -> Set[str]:
        names = await self._storage.list_names()
        return {name for name in names if not is_hidden_name(name)}
