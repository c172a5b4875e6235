from .change_aggregator import ChangeAggregator
from .storage_watcher import StorageWatcher

__all__ = ["ChangeAggregator", "StorageWatcher"]
