from fastapi import APIRouter

from src.api.endpoints import health, remove_bg

router = APIRouter()
router.include_router(health.router, tags=["health"])
router.include_router(remove_bg.router, tags=["background-removal"])
