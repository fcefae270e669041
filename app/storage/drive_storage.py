import logging
import time
from collections.abc import Iterator
from datetime import datetime
from urllib.parse import quote

import jwt
import requests

from app.utils.credentials import ServiceAccountCredentials
from app.utils.jwt import create_assertion

from .photo_storage import (
    DEFAULT_CONTENT_TYPE,
    NotFound,
    PhotoStorage,
    RemoteFile,
    RemoteImage,
    RemoteUnavailable,
)

logger = logging.getLogger(__name__)


class GoogleDriveStorage(PhotoStorage):
    """
    Photo storage using the Google Drive v3 HTTP API with a service account.
    """
    _DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
    _JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
    _LIST_FIELDS = "files(id, name, mimeType, modifiedTime)"
    _SUCCESS_CODE = 200
    _NOT_FOUND_CODE = 404
    _TIMEOUT = 10  # seconds
    _CHUNK_SIZE = 64 * 1024
    _EXPIRY_MARGIN = 60  # seconds

    def __init__(self, credentials: ServiceAccountCredentials) -> None:
        self.credentials = credentials
        self.token: str | None = None
        self._token_expires_at = 0.0

    def _refresh_token(self) -> None:
        try:
            assertion = create_assertion(self.credentials)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            error_message = f"Cannot sign service account assertion: {exc}"
            raise RemoteUnavailable(error_message) from exc
        try:
            resp = requests.post(
                self.credentials.token_uri,
                data={
                    "grant_type": self._JWT_BEARER_GRANT,
                    "assertion": assertion,
                },
                timeout=self._TIMEOUT,
            )
        except requests.RequestException as exc:
            error_message = f"Failed to obtain Google access token: {exc}"
            raise RemoteUnavailable(error_message) from exc
        if resp.status_code != self._SUCCESS_CODE:
            error_message = (
                f"Failed to obtain Google access token: {resp.status_code} "
                f"{resp.text}"
            )
            raise RemoteUnavailable(error_message)
        try:
            token_json = resp.json()
            self.token = token_json.get("access_token")
            expires_in = float(token_json.get("expires_in", 3600))
        except (AttributeError, TypeError, ValueError) as exc:
            error_message = f"Malformed Google token response: {exc}"
            raise RemoteUnavailable(error_message) from exc
        if not self.token:
            error_message = "Failed to obtain Google access token"
            raise RemoteUnavailable(error_message)
        self._token_expires_at = time.monotonic() + expires_in - self._EXPIRY_MARGIN
        logger.debug("Obtained Google access token valid for %ss", expires_in)

    def _auth_headers(self) -> dict[str, str]:
        if not self.token or time.monotonic() >= self._token_expires_at:
            self._refresh_token()
        return {"Authorization": f"Bearer {self.token}"}

    def list_images(self, folder_id: str) -> list[RemoteImage]:
        # Drive query string literals escape backslash and single quote
        quoted_folder = folder_id.replace("\\", "\\\\").replace("'", "\\'")
        params: dict[str, str | int] = {
            "q": (
                f"'{quoted_folder}' in parents and (mimeType contains 'image/') "
                "and trashed = false"
            ),
            "fields": self._LIST_FIELDS,
            "orderBy": "modifiedTime desc",
            "pageSize": self.page_size,
        }
        headers = self._auth_headers()
        try:
            resp = requests.get(
                self._DRIVE_FILES_URL,
                headers=headers,
                params=params,
                timeout=self._TIMEOUT,
            )
        except requests.RequestException as exc:
            error_message = f"Drive API request failed: {exc}"
            raise RemoteUnavailable(error_message) from exc
        if resp.status_code != self._SUCCESS_CODE:
            error_message = f"Drive API error: {resp.status_code} {resp.text}"
            raise RemoteUnavailable(error_message)
        try:
            files = resp.json().get("files", [])
            return [
                RemoteImage(
                    id=entry["id"],
                    name=entry.get("name", ""),
                    mime_type=entry.get("mimeType", DEFAULT_CONTENT_TYPE),
                    modified_time=datetime.fromisoformat(entry["modifiedTime"]),
                )
                for entry in files
            ]
        except (KeyError, TypeError, ValueError) as exc:
            error_message = f"Malformed Drive listing: {exc}"
            raise RemoteUnavailable(error_message) from exc

    def fetch_bytes(self, file_id: str) -> RemoteFile:
        url = f"{self._DRIVE_FILES_URL}/{quote(file_id, safe='')}"
        headers = self._auth_headers()
        try:
            resp = requests.get(
                url,
                headers=headers,
                params={"alt": "media"},
                stream=True,
                timeout=self._TIMEOUT,
            )
        except requests.RequestException as exc:
            error_message = f"Drive API request failed: {exc}"
            raise RemoteUnavailable(error_message) from exc
        if resp.status_code == self._NOT_FOUND_CODE:
            resp.close()
            error_message = f"File not found: {file_id}"
            raise NotFound(error_message)
        if resp.status_code != self._SUCCESS_CODE:
            error_message = f"Drive API error: {resp.status_code} {resp.text}"
            resp.close()
            raise RemoteUnavailable(error_message)
        content_type = resp.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
        return RemoteFile(content_type=content_type, chunks=self._stream(resp))

    def _stream(self, resp: requests.Response) -> Iterator[bytes]:
        try:
            yield from resp.iter_content(chunk_size=self._CHUNK_SIZE)
        except requests.RequestException as exc:
            error_message = f"Drive download interrupted: {exc}"
            raise RemoteUnavailable(error_message) from exc
        finally:
            resp.close()
