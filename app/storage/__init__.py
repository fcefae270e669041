from app.config import Settings
from app.utils.credentials import load_credentials

from .drive_storage import GoogleDriveStorage
from .filesystem_storage import FileSystemStorage
from .photo_storage import (
    NotFound,
    PhotoStorage,
    RemoteFile,
    RemoteImage,
    RemoteUnavailable,
    StorageError,
)


def get_storage_backend(settings: Settings) -> PhotoStorage:
    """
    Factory for storage backend based on settings.storage_backend
    (STORAGE_BACKEND env var). Defaults to GoogleDriveStorage.

    Supported values (case-insensitive):
      - 'drive'
      - 'filesystem'
    """
    backend = settings.storage_backend.lower()
    if backend == "filesystem":
        return FileSystemStorage(settings.photos_root, settings.folder_id)
    if backend in ("drive", ""):  # default
        return GoogleDriveStorage(load_credentials(settings))
    error_message = f"Unknown storage backend: {backend}"
    raise ValueError(error_message)


__all__ = [
    "FileSystemStorage",
    "GoogleDriveStorage",
    "NotFound",
    "PhotoStorage",
    "RemoteFile",
    "RemoteImage",
    "RemoteUnavailable",
    "StorageError",
    "get_storage_backend",
]
