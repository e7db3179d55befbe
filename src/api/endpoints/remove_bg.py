from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from src.api.deps import get_remover, get_settings, get_store
from src.config import Settings
from src.schemas.images import ErrorResponse, RemoveBackgroundResponse
from src.services import pipeline
from src.services.bg_removal import BackgroundRemovalClient
from src.services.temp_store import TemporaryFileStore

router = APIRouter(prefix="/api")

IMAGE_FIELD = "image"


@router.post(
    "/remove-bg",
    response_model=RemoveBackgroundResponse,
    responses={status: {"model": ErrorResponse} for status in (400, 401, 402, 403, 408, 429, 500, 503)},
)
async def remove_background(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: TemporaryFileStore = Depends(get_store),
    remover: BackgroundRemovalClient = Depends(get_remover),
) -> RemoveBackgroundResponse:
    async with request.form() as form:
        uploads = [item for item in form.getlist(IMAGE_FIELD) if isinstance(item, UploadFile) and item.filename]
        result = await pipeline.remove_background(uploads, settings=settings, store=store, remover=remover)

    return RemoveBackgroundResponse(
        image=result.data_uri,
        message=f"Background removed successfully ({remover.adapter.label})",
    )
