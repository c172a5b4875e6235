import logging
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from photoframe.core.exceptions import (
    InvalidCredentialsError,
    InvalidPathError,
    InvalidUploadError,
    PhotoFrameError,
    PhotoNotFoundError,
    StorageUnavailableError,
    TooManyLoginAttemptsError,
    UnauthorizedError,
)

_STATUS_BY_ERROR: Dict[Type[PhotoFrameError], int] = {
    StorageUnavailableError: 500,
    UnauthorizedError: 403,
    InvalidCredentialsError: 401,
    TooManyLoginAttemptsError: 429,
    PhotoNotFoundError: 404,
    InvalidPathError: 403,
    InvalidUploadError: 400,
}

# Login responses carry a success flag the frontend checks
_LOGIN_ERRORS = (InvalidCredentialsError, TooManyLoginAttemptsError)


def status_for(error: PhotoFrameError) -> int:
    for error_type in type(error).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]
    return 500


async def photo_frame_error_handler(request: Request, exc: PhotoFrameError) -> JSONResponse:
    status_code = status_for(exc)
    content: Dict[str, object] = {"error": str(exc)}
    if isinstance(exc, _LOGIN_ERRORS):
        content = {"success": False, "error": str(exc)}

    if status_code >= 500:
        logging.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logging.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")

    headers = None
    if isinstance(exc, TooManyLoginAttemptsError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PhotoFrameError, photo_frame_error_handler)
