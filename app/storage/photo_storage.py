from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime

DEFAULT_CONTENT_TYPE = "image/jpeg"


class StorageError(Exception):
    """Base exception for storage backend failures."""


class RemoteUnavailable(StorageError):  # noqa: N818
    """The listing or download call failed (network, auth, or API error)."""


class NotFound(StorageError):  # noqa: N818
    """The requested file id does not exist in the backend."""


@dataclass(frozen=True)
class RemoteImage:
    id: str
    name: str
    mime_type: str
    modified_time: datetime


@dataclass
class RemoteFile:
    content_type: str
    chunks: Iterator[bytes]


class PhotoStorage(ABC):
    """
    Interface for photo storage backends.
    """

    page_size: int = 100

    @abstractmethod
    def list_images(self, folder_id: str) -> list[RemoteImage]:
        """
        Return the images in folder_id, newest first, at most page_size entries.
        Raises RemoteUnavailable when the listing cannot be obtained.
        """
        error_message = "list_images not implemented"
        raise NotImplementedError(error_message)

    @abstractmethod
    def fetch_bytes(self, file_id: str) -> RemoteFile:
        """
        Open the raw bytes of the image specified by file_id.
        Raises NotFound or RemoteUnavailable.
        """
        error_message = "fetch_bytes not implemented"
        raise NotImplementedError(error_message)
