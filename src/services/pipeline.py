import base64
from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from starlette.datastructures import UploadFile

from src.config import Settings
from src.core.exceptions import AppError, ErrorKind, ProviderFailure, RelayError
from src.services.bg_removal import BackgroundRemovalClient
from src.services.temp_store import TemporaryFileStore
from src.services.upload_validator import normalize_mime_type, validate_upload

logger = structlog.get_logger()

RESULT_MEDIA_TYPE = "image/png"


@dataclass(frozen=True)
class RemovalResult:
    image_bytes: bytes
    encoding: str = "base64"

    @property
    def data_uri(self) -> str:
        payload = base64.b64encode(self.image_bytes).decode()
        return f"data:{RESULT_MEDIA_TYPE};{self.encoding},{payload}"


async def remove_background(
    uploads: Sequence[UploadFile],
    *,
    settings: Settings,
    store: TemporaryFileStore,
    remover: BackgroundRemovalClient,
) -> RemovalResult:
    """Validate one uploaded image, forward it to the provider and return the cut-out.

    Stages run in order: received, validated, forwarding, then succeeded or
    failed. Every failure is raised as ``RelayError``; the temporary copy of
    the upload is removed before this coroutine returns or raises.
    """
    if not uploads:
        raise RelayError(ErrorKind.NO_IMAGE_UPLOADED)

    upload = validate_upload(uploads, settings.allowed_mime_types, settings.max_upload_bytes)
    mime_type = normalize_mime_type(upload.content_type)

    if not remover.configured:
        logger.error("provider_credential_missing", provider=remover.adapter.name)
        raise RelayError(ErrorKind.CONFIGURATION_ERROR)

    try:
        async with store.hold(upload, settings.max_upload_bytes, mime_type=mime_type) as image:
            if image.size_bytes == 0:
                raise RelayError(ErrorKind.INVALID_IMAGE, internal_detail="Uploaded file is empty")

            logger.info(
                "background_removal_started",
                filename=image.original_name,
                mime_type=image.mime_type,
                size=image.size_bytes,
                provider=remover.adapter.name,
            )
            result = RemovalResult(image_bytes=await remover.remove_background(image))
    except ProviderFailure as e:
        raise RelayError.from_failure(e) from e
    except AppError:
        raise
    except Exception as e:
        logger.exception("background_removal_crashed", filename=upload.filename)
        raise RelayError(ErrorKind.INTERNAL_ERROR, internal_detail=str(e)) from e

    logger.info("background_removal_succeeded", filename=upload.filename, size=len(result.image_bytes))
    return result
