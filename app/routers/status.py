from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, HTMLResponse

from app.config import Settings
from app.deps import get_service, get_settings
from app.schemas import HealthResponse
from app.service import PhotoService

router = APIRouter()

LANDING_PAGE = "slideshow.html"

SETUP_INSTRUCTIONS = """
<h1>Setup Required</h1>
<p>Please copy slideshow.html to the public folder:</p>
<code>cp slideshow.html public/</code>
"""


@router.get("/", response_model=None)
def index(
    settings: Annotated[Settings, Depends(get_settings)],
) -> FileResponse | HTMLResponse:
    slideshow = Path(settings.public_dir) / LANDING_PAGE
    if slideshow.is_file():
        return FileResponse(slideshow)
    return HTMLResponse(SETUP_INSTRUCTIONS)


@router.get("/health", response_model=HealthResponse)
def health(
    service: Annotated[PhotoService, Depends(get_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        photos_loaded=len(service.snapshot),
        drive_folder=settings.folder_id,
        base_url=settings.base_url,
        environment=settings.environment,
        timestamp=datetime.now(UTC),
    )
