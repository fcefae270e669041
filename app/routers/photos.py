import logging
from collections.abc import Iterator
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from app.deps import get_service
from app.schemas import PhotoDescriptor
from app.service import PhotoService
from app.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()

IMAGE_CACHE_CONTROL = "public, max-age=86400"


@router.get("/photos", response_model=list[PhotoDescriptor])
async def get_photos(
    service: Annotated[PhotoService, Depends(get_service)],
) -> list[PhotoDescriptor] | JSONResponse:
    """
    List the folder's photos straight from storage (not from the snapshot).
    """
    try:
        return await service.fetch_photos()
    except Exception as exc:  # noqa: BLE001
        logger.error("Error fetching photos: %s", exc)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )


def _log_stream_errors(file_id: str, chunks: Iterator[bytes]) -> Iterator[bytes]:
    # Headers are already sent once streaming starts; re-raising aborts the
    # connection instead of committing a truncated 200.
    try:
        yield from chunks
    except Exception:
        logger.exception("Error streaming image %s", file_id)
        raise


@router.get("/image/{file_id:path}", response_model=None)
async def get_image(
    file_id: str,
    service: Annotated[PhotoService, Depends(get_service)],
) -> StreamingResponse | PlainTextResponse:
    logger.info("Serving image: %s", file_id)
    try:
        remote = await run_in_threadpool(service.storage.fetch_bytes, file_id)
    except StorageError as exc:
        logger.error("Error serving image %s: %s", file_id, exc)
        return PlainTextResponse(
            "Error loading image", status_code=HTTP_500_INTERNAL_SERVER_ERROR
        )
    return StreamingResponse(
        _log_stream_errors(file_id, remote.chunks),
        media_type=remote.content_type,
        headers={
            "Cache-Control": IMAGE_CACHE_CONTROL,
            "Access-Control-Allow-Origin": "*",
        },
    )
