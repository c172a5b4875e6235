"""
Pytest configuration og shared fixtures.
"""

import json
import os
from pathlib import Path
from typing import List

import pytest

from photoframe.config import Settings
from photoframe.dependencies import reset_singletons


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before hver test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def photos_dir(tmp_path) -> Path:
    path = tmp_path / "photos"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(tmp_path, photos_dir) -> Settings:
    """Settings pointing at temporary directories, with fast timings."""
    return Settings(
        photos_directory=str(photos_dir),
        frontend_directory=str(tmp_path / "public"),
        log_file_path=str(tmp_path / "logs" / "photoframe.log"),
        admin_username="admin",
        admin_password="secret-pass",
        coalesce_window_seconds=0.02,
        polling_interval_seconds=60,
        login_max_failures=3,
    )


def write_photo(directory: Path, name: str, mtime: float | None = None, data: bytes = b"img") -> Path:
    path = directory / name
    path.write_bytes(data)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def make_photo(photos_dir):
    """Factory that creates a photo file, optionally with a fixed mtime."""

    def _make(name: str, mtime: float | None = None, data: bytes = b"img") -> Path:
        return write_photo(photos_dir, name, mtime=mtime, data=data)

    return _make


class FakeWebSocket:
    """Minimal stand-in for a FastAPI WebSocket that records sent messages."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.closed = False
        self.messages: List[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.messages.append(json.loads(text))

    async def close(self, code: int = 1000) -> None:
        self.closed = True

    @property
    def last_names(self) -> List[str]:
        return [entry["name"] for entry in self.messages[-1]["data"]]


@pytest.fixture
def make_websocket():
    def _make(fail: bool = False) -> FakeWebSocket:
        return FakeWebSocket(fail=fail)

    return _make
