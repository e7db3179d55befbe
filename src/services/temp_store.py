import re
import secrets
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import structlog
from starlette.datastructures import UploadFile

from src.core.exceptions import ErrorKind, RelayError

logger = structlog.get_logger()

CHUNK_SIZE = 64 * 1024

MEDIA_TYPE_TO_EXT = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

# <uuid4 hex>-<token_urlsafe(8)>.<ext>, as produced by generate_upload_id
UPLOAD_NAME_RE = re.compile(r"^[0-9a-f]{32}-[A-Za-z0-9_-]{11}\.(?:jpg|png|webp|bin)$")


@dataclass(frozen=True)
class UploadedImage:
    temporary_path: Path
    original_name: str
    mime_type: str
    size_bytes: int


def generate_upload_id() -> str:
    return f"{uuid.uuid4().hex}-{secrets.token_urlsafe(8)}"


class TemporaryFileStore:
    """Holds uploaded images on disk for the lifetime of a single request.

    Every file written by :meth:`acquire` must be removed by :meth:`release`;
    :meth:`hold` pairs the two so that release happens on every exit path,
    including cancellation of the request task.
    """

    def __init__(self, root: Path | str, chunk_size: int = CHUNK_SIZE) -> None:
        self.root = Path(root)
        self.chunk_size = chunk_size

    def _ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    async def acquire(self, upload: UploadFile, max_bytes: int, mime_type: str | None = None) -> UploadedImage:
        mime_type = mime_type or upload.content_type or "application/octet-stream"
        ext = MEDIA_TYPE_TO_EXT.get(mime_type, "bin")
        path = self._ensure_root() / f"{generate_upload_id()}.{ext}"

        written = 0
        try:
            with open(path, "wb") as f:
                while chunk := await upload.read(self.chunk_size):
                    written += len(chunk)
                    if written > max_bytes:
                        raise RelayError(
                            ErrorKind.FILE_TOO_LARGE,
                            internal_detail=f"Upload exceeded {max_bytes} bytes while streaming",
                        )
                    f.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        image = UploadedImage(
            temporary_path=path,
            original_name=upload.filename or path.name,
            mime_type=mime_type,
            size_bytes=written,
        )
        logger.debug("temp_file_acquired", path=str(path), size=written)
        return image

    def release(self, image: UploadedImage) -> bool:
        try:
            image.temporary_path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("temp_file_released", path=str(image.temporary_path))
        return True

    @asynccontextmanager
    async def hold(
        self, upload: UploadFile, max_bytes: int, mime_type: str | None = None
    ) -> AsyncIterator[UploadedImage]:
        image = await self.acquire(upload, max_bytes, mime_type=mime_type)
        try:
            yield image
        finally:
            self.release(image)

    def sweep(self, max_age: float) -> int:
        if not self.root.exists():
            return 0

        cutoff = time.time() - max_age
        count = 0
        for path in self.root.iterdir():
            if not path.is_file() or not UPLOAD_NAME_RE.match(path.name):
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    count += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("temp_file_sweep_failed", path=str(path), error=str(e))

        if count:
            logger.info("stale_uploads_removed", count=count)
        return count
