import asyncio
import logging
from typing import Iterable, List
from urllib.parse import quote

from photoframe.models import PhotoEntry, Snapshot
from photoframe.storage.photo_storage import PhotoStorage, StoredFileInfo
from photoframe.utils.naming import has_image_extension, is_hidden_name


def order_entries(entries: Iterable[PhotoEntry]) -> List[PhotoEntry]:
    """Newest first; equal timestamps ordered by name so the order is total."""
    by_name = sorted(entries, key=lambda entry: entry.name)
    return sorted(by_name, key=lambda entry: entry.created_at, reverse=True)


class SnapshotBuilder:
    """
    Turns the raw directory listing into a canonical Snapshot.

    Pure function of storage state: building twice without a change in
    between gives identical snapshots.
    """

    def __init__(
        self,
        storage: PhotoStorage,
        image_extensions: Iterable[str],
        url_prefix: str = "/photos",
    ):
        self._storage = storage
        self._image_extensions = tuple(image_extensions)
        self._url_prefix = url_prefix.rstrip("/")

    def photo_url(self, name: str) -> str:
        return f"{self._url_prefix}/{quote(name, safe='')}"

    def is_photo_name(self, name: str) -> bool:
        return not is_hidden_name(name) and has_image_extension(name, self._image_extensions)

    async def build_snapshot(self) -> Snapshot:
        """
        Build a snapshot of the current photo directory.

        Raises StorageUnavailableError if the directory can't be listed.
        Files that disappear between listing and stat are left out.
        """
        names = await self._storage.list_names()
        candidates = sorted({name for name in names if self.is_photo_name(name)})

        infos = await asyncio.gather(*(self._storage.stat_file(name) for name in candidates))

        entries = [self._to_entry(info) for info in infos if info is not None]
        skipped = len(candidates) - len(entries)
        if skipped:
            logging.debug(f"Skipped {skipped} entries that vanished or aren't regular files")

        return Snapshot(entries=tuple(order_entries(entries)))

    def _to_entry(self, info: StoredFileInfo) -> PhotoEntry:
        return PhotoEntry(
            name=info.name,
            url=self.photo_url(info.name),
            created_at=info.modified_at,
        )
