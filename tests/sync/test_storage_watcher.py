"""
Tests for the polling StorageWatcher and the external-change path end to end.
"""

import asyncio

import pytest

from photoframe.core.events.domain_event import StorageChange, StorageChangeObservedEvent
from photoframe.core.events.event_bus import DomainEventBus
from photoframe.domains.presentation.broadcaster import SubscriptionBroadcaster
from photoframe.domains.presentation.event_handlers import PresentationEventHandlers
from photoframe.domains.snapshot.builder import SnapshotBuilder
from photoframe.domains.sync.change_aggregator import ChangeAggregator
from photoframe.domains.sync.registration import register_sync_handlers
from photoframe.domains.sync.storage_watcher import StorageWatcher
from photoframe.storage.photo_storage import PhotoStorage

pytestmark = pytest.mark.asyncio


class TestStorageWatcher:
    @pytest.fixture
    def event_bus(self):
        return DomainEventBus()

    @pytest.fixture
    def watcher(self, photos_dir, event_bus):
        return StorageWatcher(PhotoStorage(photos_dir), event_bus, polling_interval_seconds=0.01)

    @pytest.fixture
    def observed(self):
        return []

    async def _listen(self, event_bus, observed):
        async def record(event):
            observed.append((event.change, event.name))

        await event_bus.subscribe(StorageChangeObservedEvent, record)

    async def test_first_poll_is_baseline_without_events(self, watcher, event_bus, observed, make_photo):
        await self._listen(event_bus, observed)
        make_photo("existing.jpg")

        assert await watcher.poll_once() == 0
        assert observed == []

    async def test_detects_additions_and_removals(self, watcher, event_bus, observed, make_photo, photos_dir):
        await self._listen(event_bus, observed)
        make_photo("old.jpg")
        await watcher.poll_once()

        make_photo("c.jpg")
        (photos_dir / "old.jpg").unlink()

        assert await watcher.poll_once() == 2
        assert observed == [
            (StorageChange.ADDED, "c.jpg"),
            (StorageChange.REMOVED, "old.jpg"),
        ]

    async def test_hidden_files_are_ignored(self, watcher, event_bus, observed, make_photo):
        await self._listen(event_bus, observed)
        await watcher.poll_once()

        make_photo(".c.jpg.part")

        assert await watcher.poll_once() == 0
        assert observed == []

    async def test_missing_directory_is_logged_not_fatal(self, tmp_path, event_bus):
        watcher = StorageWatcher(PhotoStorage(tmp_path / "missing"), event_bus, 0.01)

        await watcher.start_watching()
        await asyncio.sleep(0.05)

        assert watcher.is_running
        await watcher.stop_watching()
        assert not watcher.is_running

    async def test_background_loop_picks_up_external_change(self, watcher, event_bus, observed, make_photo):
        await self._listen(event_bus, observed)
        await watcher.start_watching()
        try:
            make_photo("c.jpg")
            for _ in range(100):
                if observed:
                    break
                await asyncio.sleep(0.01)
        finally:
            await watcher.stop_watching()

        assert observed == [(StorageChange.ADDED, "c.jpg")]


async def test_external_addition_is_broadcast_without_api_call(photos_dir, make_photo, make_websocket):
    """A file copied straight into the directory reaches every viewer."""
    event_bus = DomainEventBus()
    storage = PhotoStorage(photos_dir)
    aggregator = ChangeAggregator(
        SnapshotBuilder(storage, ["jpg", "png"]), event_bus, coalesce_window_seconds=0.01
    )
    broadcaster = SubscriptionBroadcaster(lambda: aggregator.current_snapshot)
    await register_sync_handlers(event_bus, aggregator, PresentationEventHandlers(broadcaster))
    watcher = StorageWatcher(storage, event_bus)

    await watcher.poll_once()
    viewer = make_websocket()
    await broadcaster.subscribe(viewer)
    assert viewer.messages[0] == {"type": "photos_updated", "data": []}

    make_photo("c.jpg")
    await watcher.poll_once()
    await aggregator.wait_idle()

    assert len(viewer.messages) == 2
    assert viewer.last_names == ["c.jpg"]
