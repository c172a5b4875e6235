from .photo_storage import PhotoStorage, StoredFileInfo

__all__ = ["PhotoStorage", "StoredFileInfo"]
