from collections.abc import Sequence

import structlog
from starlette.datastructures import UploadFile

from src.core.exceptions import ErrorKind, RelayError

logger = structlog.get_logger()


def normalize_mime_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def validate_upload(uploads: Sequence[UploadFile], allowed_mime_types: Sequence[str], max_bytes: int) -> UploadFile:
    """Return the single acceptable upload or raise ``RelayError``.

    Checks the declared MIME type and size of the multipart part, so nothing
    is forwarded or even copied to disk when the upload is rejected.
    """
    if not uploads:
        raise RelayError(ErrorKind.NO_IMAGE_UPLOADED)
    if len(uploads) > 1:
        raise RelayError(ErrorKind.TOO_MANY_FILES, internal_detail=f"Received {len(uploads)} files")

    upload = uploads[0]
    mime_type = normalize_mime_type(upload.content_type)
    allowed = {normalize_mime_type(t) for t in allowed_mime_types}
    if mime_type not in allowed:
        logger.info("upload_rejected", reason="invalid_file_type", mime_type=mime_type, filename=upload.filename)
        raise RelayError(ErrorKind.INVALID_FILE_TYPE, internal_detail=f"Received {mime_type or 'no content type'}")

    if upload.size is not None:
        if upload.size > max_bytes:
            logger.info("upload_rejected", reason="file_too_large", size=upload.size, filename=upload.filename)
            raise RelayError(ErrorKind.FILE_TOO_LARGE, internal_detail=f"Received {upload.size} bytes")
        if upload.size == 0:
            logger.info("upload_rejected", reason="empty_file", filename=upload.filename)
            raise RelayError(ErrorKind.INVALID_IMAGE, internal_detail="Uploaded file is empty")

    return upload
