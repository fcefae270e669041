from datetime import datetime
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.storage import RemoteImage


def build_photo_url(base_url: str, photo_id: str) -> str:
    """Proxy URL for photo_id: base + /image/ + percent-encoded id."""
    return f"{base_url.rstrip('/')}/image/{quote(photo_id, safe='')}"


class PhotoDescriptor(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: str
    name: str
    mime_type: str
    modified_time: datetime
    url: str

    @classmethod
    def from_remote(cls, image: RemoteImage, base_url: str) -> "PhotoDescriptor":
        return cls(
            id=image.id,
            name=image.name,
            mime_type=image.mime_type,
            modified_time=image.modified_time,
            url=build_photo_url(base_url, image.id),
        )


class RescanResponse(BaseModel):
    status: str
    added: int
    removed: int


class HealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    photos_loaded: int
    drive_folder: str
    base_url: str
    environment: str
    timestamp: datetime
