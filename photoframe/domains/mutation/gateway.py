import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from photoframe.core.events.domain_event import MutationKind, PhotosMutatedEvent
from photoframe.core.events.event_bus import DomainEventBus
from photoframe.core.exceptions import (
    InvalidCredentialsError,
    InvalidPathError,
    InvalidUploadError,
    StorageUnavailableError,
)
from photoframe.domains.mutation.auth import LoginThrottle, TokenService
from photoframe.storage.photo_storage import PhotoStorage
from photoframe.utils.naming import has_image_extension, unique_storage_name

UploadFileData = Tuple[str, bytes]


@dataclass
class UploadResult:
    stored: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.stored)


class MutationGateway:
    """
    Entry point for every change made through the API.

    Verifies the caller, validates input, writes to storage and tells the
    change aggregator (via the event bus) once per completed mutation.
    """

    def __init__(
        self,
        storage: PhotoStorage,
        event_bus: DomainEventBus,
        token_service: TokenService,
        login_throttle: LoginThrottle,
        image_extensions: Iterable[str],
        max_upload_files: int = 50,
    ):
        self._storage = storage
        self._event_bus = event_bus
        self._tokens = token_service
        self._throttle = login_throttle
        self._image_extensions = tuple(image_extensions)
        self._max_upload_files = max_upload_files

    def login(self, username: str, password: str, client_id: str = "unknown") -> str:
        self._throttle.check(client_id)
        try:
            token = self._tokens.login(username, password)
        except InvalidCredentialsError:
            self._throttle.record_failure(client_id)
            logging.warning(
                f"Failed login attempt for '{username}' from {client_id}",
                extra={"operation": "login_failed", "client": client_id},
            )
            raise

        self._throttle.reset(client_id)
        logging.info(f"Admin '{username}' logged in from {client_id}")
        return token

    async def add_photos(
        self, authorization: Optional[str], files: Sequence[UploadFileData]
    ) -> UploadResult:
        self._tokens.verify_authorization_header(authorization)

        if not files:
            raise InvalidUploadError("No files uploaded")
        if len(files) > self._max_upload_files:
            raise InvalidUploadError(
                f"Too many files: {len(files)} (max {self._max_upload_files})"
            )

        result = UploadResult()
        for original_name, data in files:
            if not original_name or not has_image_extension(original_name, self._image_extensions):
                logging.info(f"Skipping non-image upload: {original_name!r}")
                result.skipped.append(original_name)
                continue

            storage_name = unique_storage_name(original_name)
            try:
                await self._storage.write(storage_name, data)
            except (StorageUnavailableError, InvalidPathError) as e:
                # Already written siblings stay; no rollback
                logging.error(f"Upload of {original_name} failed: {e}")
                result.failed.append(original_name)
                continue
            result.stored.append(storage_name)

        logging.info(
            f"Uploaded files: {result.count} stored, "
            f"{len(result.skipped)} skipped, {len(result.failed)} failed"
        )

        if result.stored:
            await self._event_bus.publish(
                PhotosMutatedEvent(kind=MutationKind.UPLOAD, names=tuple(result.stored))
            )
        elif result.failed:
            raise StorageUnavailableError(str(self._storage.root), "no file could be written")

        return result

    async def delete_photo(self, authorization: Optional[str], name: str) -> None:
        self._tokens.verify_authorization_header(authorization)

        try:
            await self._storage.delete(name)
        except InvalidPathError:
            logging.warning(
                f"Rejected delete outside photo directory: {name!r}",
                extra={"operation": "path_traversal_attempt"},
            )
            raise

        logging.info(f"Deleted file: {name}")
        await self._event_bus.publish(PhotosMutatedEvent(kind=MutationKind.DELETE, names=(name,)))
