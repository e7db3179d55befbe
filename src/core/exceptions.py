from dataclasses import dataclass
from enum import Enum

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class ErrorKind(str, Enum):
    NO_IMAGE_UPLOADED = "no_image_uploaded"
    TOO_MANY_FILES = "too_many_files"
    INVALID_FILE_TYPE = "invalid_file_type"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_IMAGE = "invalid_image"
    AUTHENTICATION_FAILED = "authentication_failed"
    QUOTA_EXHAUSTED = "quota_exhausted"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    CONFIGURATION_ERROR = "configuration_error"
    INTERNAL_ERROR = "internal_error"
    SERVICE_UNAVAILABLE = "service_unavailable"


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NO_IMAGE_UPLOADED: 400,
    ErrorKind.TOO_MANY_FILES: 400,
    ErrorKind.INVALID_FILE_TYPE: 400,
    ErrorKind.FILE_TOO_LARGE: 400,
    ErrorKind.INVALID_IMAGE: 400,
    ErrorKind.AUTHENTICATION_FAILED: 401,
    ErrorKind.QUOTA_EXHAUSTED: 402,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.PROVIDER_ERROR: 500,
    ErrorKind.CONFIGURATION_ERROR: 500,
    ErrorKind.INTERNAL_ERROR: 500,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
}

ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NO_IMAGE_UPLOADED: "No image uploaded",
    ErrorKind.TOO_MANY_FILES: "Only one image can be uploaded at a time",
    ErrorKind.INVALID_FILE_TYPE: "Invalid file type. Only JPG, PNG, WEBP allowed.",
    ErrorKind.FILE_TOO_LARGE: "File too large (max 10MB)",
    ErrorKind.INVALID_IMAGE: "Invalid or corrupted image",
    ErrorKind.AUTHENTICATION_FAILED: "Invalid or expired API credentials",
    ErrorKind.QUOTA_EXHAUSTED: "API credits exhausted",
    ErrorKind.TIMEOUT: "Background removal timed out",
    ErrorKind.RATE_LIMITED: "Too many requests, please try again later",
    ErrorKind.PROVIDER_ERROR: "Background removal service returned an error",
    ErrorKind.CONFIGURATION_ERROR: "Background removal API key not configured",
    ErrorKind.INTERNAL_ERROR: "Failed to remove background",
    ErrorKind.SERVICE_UNAVAILABLE: "Background removal service unavailable",
}


@dataclass(frozen=True)
class ErrorReport:
    http_status: int
    user_message: str
    internal_detail: str | None = None

    def body(self, expose_details: bool) -> dict[str, object]:
        body: dict[str, object] = {"success": False, "error": self.user_message}
        if expose_details and self.internal_detail:
            body["details"] = self.internal_detail
        return body


class AppError(Exception):
    def __init__(self, status_code: int, detail: str, internal_detail: str | None = None) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.internal_detail = internal_detail

    def report(self) -> ErrorReport:
        return ErrorReport(http_status=self.status_code, user_message=self.detail, internal_detail=self.internal_detail)


class ProviderFailure(Exception):
    """Raised by the background-removal client when a provider call does not succeed.

    ``status`` is the provider's HTTP status, or ``None`` when the request never
    got a response (timeout, DNS or connection failure).
    """

    def __init__(self, kind: ErrorKind, status: int | None = None, detail: str | None = None) -> None:
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
        self.kind = kind
        self.status = status
        self.detail = detail


class RelayError(AppError):
    def __init__(self, kind: ErrorKind, internal_detail: str | None = None, provider_status: int | None = None) -> None:
        status_code = ERROR_STATUS[kind]
        if kind is ErrorKind.AUTHENTICATION_FAILED and provider_status == 403:
            status_code = 403
        super().__init__(status_code=status_code, detail=ERROR_MESSAGES[kind], internal_detail=internal_detail)
        self.kind = kind
        self.provider_status = provider_status

    @classmethod
    def from_failure(cls, failure: ProviderFailure) -> "RelayError":
        return cls(failure.kind, internal_detail=failure.detail, provider_status=failure.status)


def register_exception_handlers(app: FastAPI, expose_details: bool) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        report = exc.report()
        return JSONResponse(status_code=report.http_status, content=report.body(expose_details))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"success": False, "error": "Route not found", "path": request.url.path},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [{k: v for k, v in error.items() if k != "url"} for error in exc.errors()]
        return JSONResponse(status_code=422, content={"success": False, "detail": jsonable_encoder(errors)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path)
        report = ErrorReport(http_status=500, user_message="Internal server error", internal_detail=str(exc))
        return JSONResponse(status_code=report.http_status, content=report.body(expose_details))
