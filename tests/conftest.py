from collections.abc import AsyncIterator
from io import BytesIO
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from PIL import Image
from starlette.datastructures import Headers, UploadFile

from src.config import Settings
from src.main import create_app

CUTOUT_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR-cutout"


class ProviderStub:
    """Stands in for the remote provider behind ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.content = CUTOUT_BYTES
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, content=self.content)

    def respond(self, status_code: int, content: bytes | str = b"") -> None:
        self.status_code = status_code
        self.content = content.encode() if isinstance(content, str) else content


def make_test_image(width: int = 32, height: int = 32, fmt: str = "PNG") -> bytes:
    img = Image.new("RGB", (width, height), color="red")
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_upload(data: bytes, filename: str = "photo.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=BytesIO(data),
        filename=filename,
        size=len(data),
        headers=Headers({"content-type": content_type}),
    )


def leftover_files(root: Path | str) -> list[Path]:
    root = Path(root)
    if not root.exists():
        return []
    return [p for p in root.iterdir() if p.is_file()]


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        uploads_path=str(tmp_path / "uploads"),
        provider="removebg",
        provider_api_key="test-key",
        provider_timeout=5.0,
    )


@pytest.fixture
def app(settings: Settings, provider: ProviderStub) -> FastAPI:
    return create_app(settings, transport=httpx.MockTransport(provider))


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
