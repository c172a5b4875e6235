"""
Tests for PhotoStorage - the accessor every other component goes through.
"""

import pytest

from photoframe.core.exceptions import InvalidPathError, PhotoNotFoundError, StorageUnavailableError
from photoframe.storage.photo_storage import PhotoStorage

pytestmark = pytest.mark.asyncio


class TestPhotoStorage:
    @pytest.fixture
    def storage(self, photos_dir):
        return PhotoStorage(photos_dir)

    async def test_write_then_list(self, storage, photos_dir):
        await storage.write("a.jpg", b"data")

        assert (photos_dir / "a.jpg").read_bytes() == b"data"
        assert await storage.list_names() == ["a.jpg"]

    async def test_write_leaves_no_temp_file(self, storage, photos_dir):
        await storage.write("a.jpg", b"data")

        assert sorted(p.name for p in photos_dir.iterdir()) == ["a.jpg"]

    async def test_list_missing_root_raises_storage_unavailable(self, tmp_path):
        storage = PhotoStorage(tmp_path / "does-not-exist")

        with pytest.raises(StorageUnavailableError):
            await storage.list_names()

    async def test_ensure_root_creates_directory(self, tmp_path):
        storage = PhotoStorage(tmp_path / "new" / "photos")
        await storage.ensure_root()

        assert (tmp_path / "new" / "photos").is_dir()

    async def test_stat_file_returns_none_for_missing_and_directories(self, storage, photos_dir):
        (photos_dir / "folder.jpg").mkdir()

        assert await storage.stat_file("missing.jpg") is None
        assert await storage.stat_file("folder.jpg") is None

    async def test_stat_file_reports_utc_timestamp(self, storage, make_photo):
        make_photo("a.jpg", mtime=1_700_000_000)

        info = await storage.stat_file("a.jpg")

        assert info is not None
        assert info.modified_at.timestamp() == 1_700_000_000
        assert info.modified_at.tzinfo is not None

    @pytest.mark.parametrize(
        "name",
        ["../../etc/passwd", "../outside.jpg", "..", ".", "", "sub/a.jpg", "/etc/passwd"],
    )
    async def test_resolve_rejects_names_outside_root(self, storage, name):
        with pytest.raises(InvalidPathError):
            storage.resolve(name)

    async def test_delete_traversal_never_touches_outside(self, storage, tmp_path):
        outside = tmp_path / "precious.jpg"
        outside.write_bytes(b"keep me")

        with pytest.raises(InvalidPathError):
            await storage.delete("../precious.jpg")

        assert outside.read_bytes() == b"keep me"

    async def test_delete_missing_raises_not_found(self, storage):
        with pytest.raises(PhotoNotFoundError):
            await storage.delete("nope.jpg")

    async def test_delete_directory_raises_not_found(self, storage, photos_dir):
        (photos_dir / "album.jpg").mkdir()

        with pytest.raises(PhotoNotFoundError):
            await storage.delete("album.jpg")

    async def test_delete_removes_file(self, storage, make_photo, photos_dir):
        make_photo("a.jpg")
        await storage.delete("a.jpg")

        assert not (photos_dir / "a.jpg").exists()
