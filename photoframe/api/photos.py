import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Header, Request, UploadFile

from photoframe.dependencies import get_mutation_gateway, get_snapshot_builder
from photoframe.domains.mutation.gateway import MutationGateway
from photoframe.domains.snapshot.builder import SnapshotBuilder
from photoframe.models import DeleteResponse, LoginRequest, LoginResponse, UploadResponse

router = APIRouter(prefix="/api", tags=["photos"])


@router.get("/photos")
async def list_photos(builder: SnapshotBuilder = Depends(get_snapshot_builder)) -> list:
    """Current photos, newest first. Always read fresh from storage."""
    snapshot = await builder.build_snapshot()
    logging.info(f"Sending {len(snapshot.entries)} photos", extra={"operation": "api_photos"})
    return snapshot.to_payload()


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    gateway: MutationGateway = Depends(get_mutation_gateway),
) -> LoginResponse:
    client_id = request.client.host if request.client else "unknown"
    token = gateway.login(credentials.username, credentials.password, client_id=client_id)
    return LoginResponse(success=True, token=token)


@router.post("/upload", response_model=UploadResponse)
async def upload_photos(
    photos: Optional[List[UploadFile]] = File(default=None),
    authorization: Optional[str] = Header(default=None),
    gateway: MutationGateway = Depends(get_mutation_gateway),
) -> UploadResponse:
    files = []
    for upload in photos or []:
        try:
            files.append((upload.filename or "", await upload.read()))
        finally:
            await upload.close()

    result = await gateway.add_photos(authorization, files)
    return UploadResponse(success=True, count=result.count, skipped=result.skipped)


@router.delete("/photos/{name:path}", response_model=DeleteResponse)
async def delete_photo(
    name: str,
    authorization: Optional[str] = Header(default=None),
    gateway: MutationGateway = Depends(get_mutation_gateway),
) -> DeleteResponse:
    # Path params arrive URL-decoded
    await gateway.delete_photo(authorization, name)
    return DeleteResponse(success=True)
