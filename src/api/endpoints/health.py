from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from src.api.deps import get_remover, get_settings
from src.config import Settings
from src.schemas.health import HealthResponse, ServerStatusResponse
from src.services.bg_removal import BackgroundRemovalClient

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/", response_model=ServerStatusResponse)
async def server_status(remover: BackgroundRemovalClient = Depends(get_remover)) -> ServerStatusResponse:
    return ServerStatusResponse(
        status="Server is running",
        timestamp=_now(),
        api_key_configured=remover.configured,
    )


@router.get("/api/health", response_model=HealthResponse)
async def health(
    settings: Settings = Depends(get_settings),
    remover: BackgroundRemovalClient = Depends(get_remover),
) -> HealthResponse:
    return HealthResponse(service=settings.app_name, timestamp=_now(), provider=remover.adapter.name)
