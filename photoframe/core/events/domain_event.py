"""
Domain events for the photo synchronization engine.

Two independent change sources publish their own event type so the change
aggregator can tell them apart:

* ``PhotosMutatedEvent`` - an API mutation (upload/delete) completed.
* ``StorageChangeObservedEvent`` - the storage watcher saw a file appear or
  disappear, no matter who caused it.

``SnapshotRebuiltEvent`` is published by the aggregator whenever a new
snapshot becomes current.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from photoframe.models import Snapshot


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """
    Represents an event that occurred in the domain.

    Attributes:
        event_id: A unique identifier for the event instance.
        timestamp: The UTC time when the event was created.
    """

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MutationKind(str, Enum):
    UPLOAD = "upload"
    DELETE = "delete"


class StorageChange(str, Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class PhotosMutatedEvent(DomainEvent):
    """Published once per completed API mutation (one per upload batch)."""

    kind: MutationKind
    names: Tuple[str, ...]


@dataclass(frozen=True)
class StorageChangeObservedEvent(DomainEvent):
    """Published by the storage watcher for every added or removed file."""

    change: StorageChange
    name: str


@dataclass(frozen=True)
class SnapshotRebuiltEvent(DomainEvent):
    """Published when the change aggregator makes a new snapshot current."""

    snapshot: "Snapshot"
    trigger_count: int
