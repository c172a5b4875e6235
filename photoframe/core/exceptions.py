# photoframe/core/exceptions.py


class PhotoFrameError(Exception):
    """Base class for all errors raised by the photo frame domain."""


class StorageUnavailableError(PhotoFrameError):
    """Raised when the photo directory cannot be listed, read or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Storage unavailable at {path}: {reason}")


class UnauthorizedError(PhotoFrameError):
    """Raised when a mutation is attempted without a valid session token."""

    def __init__(self, reason: str = "Unauthorized"):
        self.reason = reason
        super().__init__(reason)


class InvalidCredentialsError(PhotoFrameError):
    """Raised when a login attempt does not match the admin credentials."""

    def __init__(self):
        super().__init__("Invalid credentials")


class TooManyLoginAttemptsError(PhotoFrameError):
    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many failed login attempts, try again in {retry_after_seconds}s"
        )


class PhotoNotFoundError(PhotoFrameError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"File not found: {name}")


class InvalidPathError(PhotoFrameError):
    """Raised when a photo name resolves outside the photo directory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__("Invalid file path")


class InvalidUploadError(PhotoFrameError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
