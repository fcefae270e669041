import logging
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.service import PhotoService
from app.storage import (
    NotFound,
    PhotoStorage,
    RemoteFile,
    RemoteImage,
    RemoteUnavailable,
)
from app.utils.credentials import ServiceAccountCredentials

# Configure basic logging for tests
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

BASE_URL = "http://photos.example.com"
FOLDER_ID = "folder-123"
EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


def make_image(photo_id: str, minutes: int = 0, mime_type: str = "image/jpeg") -> RemoteImage:
    return RemoteImage(
        id=photo_id,
        name=f"{photo_id}.jpg",
        mime_type=mime_type,
        modified_time=EPOCH + timedelta(minutes=minutes),
    )


class FakeStorage(PhotoStorage):
    """In-memory storage; set `failing` to simulate a remote outage."""

    def __init__(self, images: list[RemoteImage] | None = None) -> None:
        self.images: list[RemoteImage] = list(images or [])
        self.contents: dict[str, bytes] = {}
        self.failing = False
        self.interrupted: set[str] = set()
        self.list_calls = 0

    def set_ids(self, *photo_ids: str) -> None:
        self.images = [make_image(pid, minutes=-i) for i, pid in enumerate(photo_ids)]

    def list_images(self, folder_id: str) -> list[RemoteImage]:
        self.list_calls += 1
        if self.failing:
            error_message = "remote unavailable"
            raise RemoteUnavailable(error_message)
        return list(self.images)

    def fetch_bytes(self, file_id: str) -> RemoteFile:
        if self.failing:
            error_message = "remote unavailable"
            raise RemoteUnavailable(error_message)
        if file_id not in self.contents:
            error_message = f"File not found: {file_id}"
            raise NotFound(error_message)
        data = self.contents[file_id]
        if file_id in self.interrupted:
            return RemoteFile(content_type="image/png", chunks=self._cut_off(data))
        return RemoteFile(content_type="image/png", chunks=iter([data[:3], data[3:]]))

    def _cut_off(self, data: bytes) -> Iterator[bytes]:
        yield data[:3]
        error_message = "connection reset"
        raise RemoteUnavailable(error_message)


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def service(fake_storage: FakeStorage) -> PhotoService:
    return PhotoService(fake_storage, folder_id=FOLDER_ID, base_url=BASE_URL)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    # poll_interval=0 disables the background poller; tests drive /rescan
    return Settings(
        folder_id=FOLDER_ID,
        base_url=BASE_URL,
        environment="test",
        poll_interval=0,
        public_dir=str(tmp_path / "public"),
    )


@pytest.fixture
def app(settings: Settings, fake_storage: FakeStorage) -> FastAPI:
    return create_app(settings, fake_storage)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    # the context manager runs the lifespan and keeps one event loop for
    # HTTP requests and WebSocket sessions alike
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="session")
def rsa_private_key_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def service_account(rsa_private_key_pem: str) -> ServiceAccountCredentials:
    return ServiceAccountCredentials(
        client_email="slideshow@project.iam.gserviceaccount.com",
        private_key=rsa_private_key_pem,
    )
