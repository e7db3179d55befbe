from fastapi import Request

from src.config import Settings
from src.services.bg_removal import BackgroundRemovalClient
from src.services.temp_store import TemporaryFileStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> TemporaryFileStore:
    return request.app.state.store


def get_remover(request: Request) -> BackgroundRemovalClient:
    return request.app.state.remover
