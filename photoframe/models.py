from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class PhotoEntry(BaseModel):
    """One photo in the shared directory. Identity is ``name``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Storage-relative file name")
    url: str = Field(..., description="URL the photo bytes are served from")
    created_at: datetime = Field(
        ..., serialization_alias="created", description="File timestamp (UTC)"
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Snapshot(BaseModel):
    """
    Immutable, ordered view of every photo at one instant.

    Entries are sorted newest first, ties broken by name ascending. A new
    snapshot always replaces the previous one as a whole.
    """

    model_config = ConfigDict(frozen=True)

    entries: Tuple[PhotoEntry, ...] = ()
    built_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls(entries=())

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    def same_entries(self, other: "Snapshot") -> bool:
        return self.entries == other.entries

    def to_payload(self) -> List[Dict[str, Any]]:
        return [entry.to_payload() for entry in self.entries]


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    success: bool
    token: str


class UploadResponse(BaseModel):
    success: bool
    count: int
    skipped: List[str] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    success: bool
