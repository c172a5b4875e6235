"""
Storage accessor for the shared photo directory.

Every filesystem call goes through aiofiles so the event loop never blocks
on a slow disk or a network mount.
"""
import logging
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import aiofiles
import aiofiles.os

from ..core.exceptions import InvalidPathError, PhotoNotFoundError, StorageUnavailableError


@dataclass(frozen=True)
class StoredFileInfo:
    name: str
    modified_at: datetime


class PhotoStorage:
    """Lists, writes and deletes files directly inside one root directory."""

    def __init__(self, root: Path):
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    async def ensure_root(self) -> None:
        try:
            await aiofiles.os.makedirs(self._root, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(str(self._root), str(e)) from e

    def resolve(self, name: str) -> Path:
        """
        Resolve ``name`` to a path strictly inside the storage root.

        Raises InvalidPathError for anything that escapes the root, points at
        the root itself or at a nested directory level.
        """
        if not name or "\x00" in name:
            raise InvalidPathError(name)

        candidate = (self._root / name).resolve()
        if candidate == self._root or not candidate.is_relative_to(self._root):
            raise InvalidPathError(name)
        if candidate.parent != self._root:
            raise InvalidPathError(name)
        return candidate

    async def list_names(self) -> List[str]:
        try:
            return await aiofiles.os.listdir(self._root)
        except OSError as e:
            raise StorageUnavailableError(str(self._root), str(e)) from e

    async def stat_file(self, name: str) -> Optional[StoredFileInfo]:
        """
        Stat a regular file in the root.

        Returns None when the file vanished in the meantime or is not a
        regular file, so callers can skip it instead of failing.
        """
        path = self._root / name
        try:
            stat_result = await aiofiles.os.stat(path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logging.debug(f"Could not stat {path}: {e}")
            return None

        if not stat.S_ISREG(stat_result.st_mode):
            return None

        return StoredFileInfo(
            name=name,
            modified_at=datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc),
        )

    async def write(self, name: str, data: bytes) -> Path:
        """
        Write ``data`` under ``name``.

        Bytes land in a hidden temp file first and are renamed into place, so
        watchers and listings never see a half-written photo.
        """
        target = self.resolve(name)
        temp_path = target.with_name(f".{target.name}.part")
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(temp_path, target)
        except OSError as e:
            await self._discard(temp_path)
            raise StorageUnavailableError(str(target), str(e)) from e

        logging.debug(f"Stored {name} ({len(data)} bytes)")
        return target

    async def delete(self, name: str) -> None:
        target = self.resolve(name)
        if not await aiofiles.os.path.isfile(target):
            raise PhotoNotFoundError(name)
        try:
            await aiofiles.os.remove(target)
        except FileNotFoundError as e:
            # Lost a race with another delete or an external removal
            raise PhotoNotFoundError(name) from e
        except OSError as e:
            raise StorageUnavailableError(str(target), str(e)) from e

    async def _discard(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logging.warning(f"Could not remove temp file {path}: {e}")
