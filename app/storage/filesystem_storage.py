import mimetypes
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from .photo_storage import (
    NotFound,
    PhotoStorage,
    RemoteFile,
    RemoteImage,
    RemoteUnavailable,
)


class FileSystemStorage(PhotoStorage):
    """
    Photo storage using the local filesystem; a folder id names a
    subdirectory of base_path. Useful for running without Drive credentials.
    """
    _CHUNK_SIZE = 64 * 1024

    def __init__(self, base_path: str = ".", folder_id: str = "") -> None:
        self.base_path = Path(base_path)
        self.folder_id = folder_id

    def list_images(self, folder_id: str) -> list[RemoteImage]:
        folder = self.base_path / folder_id
        try:
            entries = list(folder.iterdir())
        except OSError as exc:
            error_message = f"Cannot list {folder}: {exc}"
            raise RemoteUnavailable(error_message) from exc
        images: list[RemoteImage] = []
        for path in entries:
            mime_type, _ = mimetypes.guess_type(path.name)
            if not path.is_file() or not mime_type or not mime_type.startswith("image/"):
                continue
            try:
                mtime = path.stat().st_mtime
            except FileNotFoundError:
                # removed between iterdir and stat
                continue
            except OSError as exc:
                error_message = f"Cannot stat {path}: {exc}"
                raise RemoteUnavailable(error_message) from exc
            modified = datetime.fromtimestamp(mtime, tz=UTC)
            images.append(
                RemoteImage(
                    id=path.name,
                    name=path.name,
                    mime_type=mime_type,
                    modified_time=modified,
                )
            )
        images.sort(key=lambda image: image.modified_time, reverse=True)
        return images[: self.page_size]

    def fetch_bytes(self, file_id: str) -> RemoteFile:
        folder = self.base_path / self.folder_id
        file_path = folder / file_id
        # ids are bare file names; anything that escapes the folder is unknown
        if file_path.parent != folder or not file_path.is_file():
            error_message = f"File not found: {file_id}"
            raise NotFound(error_message)
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return RemoteFile(
            content_type=mime_type or "application/octet-stream",
            chunks=self._read_chunks(file_path),
        )

    def _read_chunks(self, file_path: Path) -> Iterator[bytes]:
        with file_path.open("rb") as handle:
            while chunk := handle.read(self._CHUNK_SIZE):
                yield chunk
