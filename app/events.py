from collections.abc import Callable
from dataclasses import dataclass

from app.schemas import PhotoDescriptor


@dataclass(frozen=True)
class PhotoAdded:
    photo: PhotoDescriptor


@dataclass(frozen=True)
class PhotoRemoved:
    photo_id: str


PhotoEvent = PhotoAdded | PhotoRemoved
Subscriber = Callable[[PhotoEvent], None]
