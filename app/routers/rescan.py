from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.deps import get_service
from app.schemas import RescanResponse
from app.service import PhotoService

router = APIRouter()


@router.post("/rescan", response_model=RescanResponse)
async def rescan(
    service: Annotated[PhotoService, Depends(get_service)],
) -> RescanResponse | JSONResponse:
    """
    Reconcile the snapshot against storage now instead of waiting for the
    next poll, and report how many photos were added and removed.
    """
    try:
        result = await service.reconcile()
    except Exception as exc:  # noqa: BLE001
        return JSONResponse(status_code=500, content={"detail": str(exc)})
    return RescanResponse(
        status="ok", added=len(result.added), removed=len(result.removed)
    )
