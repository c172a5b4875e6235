from typing import Any, Dict

from photoframe.core.events.event_bus import DomainEventBus
from photoframe.domains.mutation.auth import LoginThrottle, TokenService
from photoframe.domains.mutation.gateway import MutationGateway
from photoframe.domains.presentation.broadcaster import SubscriptionBroadcaster
from photoframe.domains.presentation.event_handlers import PresentationEventHandlers
from photoframe.domains.snapshot.builder import SnapshotBuilder
from photoframe.domains.sync.change_aggregator import ChangeAggregator
from photoframe.domains.sync.storage_watcher import StorageWatcher
from photoframe.storage.photo_storage import PhotoStorage

from .config import Settings

# Global singleton instances
_singletons: Dict[str, Any] = {}


def get_settings() -> Settings:
    """Hent Settings singleton instance."""
    if "settings" not in _singletons:
        _singletons["settings"] = Settings()
    return _singletons["settings"]


def override_settings(settings: Settings) -> None:
    """Use ``settings`` for every singleton created from now on."""
    _singletons["settings"] = settings


def get_event_bus() -> DomainEventBus:
    if "event_bus" not in _singletons:
        _singletons["event_bus"] = DomainEventBus()
    return _singletons["event_bus"]


def get_photo_storage() -> PhotoStorage:
    if "photo_storage" not in _singletons:
        _singletons["photo_storage"] = PhotoStorage(get_settings().photos_path)
    return _singletons["photo_storage"]


def get_snapshot_builder() -> SnapshotBuilder:
    if "snapshot_builder" not in _singletons:
        settings = get_settings()
        _singletons["snapshot_builder"] = SnapshotBuilder(
            storage=get_photo_storage(),
            image_extensions=settings.image_extensions,
            url_prefix=settings.photos_url_prefix,
        )
    return _singletons["snapshot_builder"]


def get_change_aggregator() -> ChangeAggregator:
    if "change_aggregator" not in _singletons:
        settings = get_settings()
        _singletons["change_aggregator"] = ChangeAggregator(
            snapshot_builder=get_snapshot_builder(),
            event_bus=get_event_bus(),
            coalesce_window_seconds=settings.coalesce_window_seconds,
            skip_unchanged=settings.skip_unchanged_snapshots,
        )
    return _singletons["change_aggregator"]


def get_storage_watcher() -> StorageWatcher:
    if "storage_watcher" not in _singletons:
        _singletons["storage_watcher"] = StorageWatcher(
            storage=get_photo_storage(),
            event_bus=get_event_bus(),
            polling_interval_seconds=get_settings().polling_interval_seconds,
        )
    return _singletons["storage_watcher"]


def get_subscription_broadcaster() -> SubscriptionBroadcaster:
    if "subscription_broadcaster" not in _singletons:
        aggregator = get_change_aggregator()
        _singletons["subscription_broadcaster"] = SubscriptionBroadcaster(
            latest_snapshot=lambda: aggregator.current_snapshot,
            send_timeout_seconds=get_settings().websocket_send_timeout_seconds,
        )
    return _singletons["subscription_broadcaster"]


def get_token_service() -> TokenService:
    if "token_service" not in _singletons:
        settings = get_settings()
        _singletons["token_service"] = TokenService(
            admin_username=settings.admin_username,
            admin_password=settings.admin_password,
            signing_key=settings.signing_key,
            ttl_seconds=settings.token_ttl_seconds,
        )
    return _singletons["token_service"]


def get_login_throttle() -> LoginThrottle:
    if "login_throttle" not in _singletons:
        settings = get_settings()
        _singletons["login_throttle"] = LoginThrottle(
            max_failures=settings.login_max_failures,
            window_seconds=settings.login_failure_window_seconds,
        )
    return _singletons["login_throttle"]


def get_mutation_gateway() -> MutationGateway:
    if "mutation_gateway" not in _singletons:
        settings = get_settings()
        _singletons["mutation_gateway"] = MutationGateway(
            storage=get_photo_storage(),
            event_bus=get_event_bus(),
            token_service=get_token_service(),
            login_throttle=get_login_throttle(),
            image_extensions=settings.image_extensions,
            max_upload_files=settings.max_upload_files,
        )
    return _singletons["mutation_gateway"]


def get_presentation_event_handlers() -> PresentationEventHandlers:
    if "presentation_event_handlers" not in _singletons:
        _singletons["presentation_event_handlers"] = PresentationEventHandlers(
            broadcaster=get_subscription_broadcaster()
        )
    return _singletons["presentation_event_handlers"]


def reset_singletons() -> None:
    _singletons.clear()
