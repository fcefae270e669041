from fastapi import Request

from app.config import Settings
from app.hub import NotificationHub
from app.service import PhotoService


def get_service(request: Request) -> PhotoService:
    """
    Dependency returning the PhotoService owned by the running application.
    It is created in the lifespan handler (or injected by create_app) and
    lives on app.state, so separate apps never share a snapshot.
    """
    return request.app.state.service


def get_hub(request: Request) -> NotificationHub:
    return request.app.state.hub


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
