from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from src.core.exceptions import ErrorKind

MAX_DETAIL_LENGTH = 500


class AuthScheme(str, Enum):
    API_KEY_HEADER = "api_key_header"
    BEARER = "bearer"
    BASIC = "basic"


@dataclass(frozen=True)
class ProviderCredential:
    scheme: AuthScheme
    value: str
    secret: str | None = None

    def __repr__(self) -> str:
        return f"ProviderCredential(scheme={self.scheme.value!r}, value='***')"

    def auth_headers(self) -> dict[str, str]:
        if self.scheme is AuthScheme.API_KEY_HEADER:
            return {"X-Api-Key": self.value}
        if self.scheme is AuthScheme.BEARER:
            return {"Authorization": f"Bearer {self.value}"}
        return {}

    def basic_auth(self) -> httpx.BasicAuth | None:
        if self.scheme is AuthScheme.BASIC:
            return httpx.BasicAuth(self.value, self.secret or "")
        return None


@dataclass(frozen=True)
class ProviderRequest:
    url: str
    headers: dict[str, str]
    files: dict[str, tuple[str, bytes, str]]
    data: dict[str, str]
    auth: httpx.Auth | None = None


_STATUS_TO_KIND: dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_IMAGE,
    401: ErrorKind.AUTHENTICATION_FAILED,
    402: ErrorKind.QUOTA_EXHAUSTED,
    403: ErrorKind.AUTHENTICATION_FAILED,
    429: ErrorKind.RATE_LIMITED,
}


def truncate_body(body: str, limit: int = MAX_DETAIL_LENGTH) -> str:
    return body if len(body) <= limit else body[:limit] + "..."


def _parse_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class ProviderAdapter:
    """Knows how to talk to one background-removal provider.

    Subclasses describe the endpoint, the multipart field layout and how the
    provider reports errors. The HTTP call itself lives in ``BackgroundRemovalClient``.
    """

    name: str = ""
    label: str = ""
    url: str = ""
    file_field: str = "image"
    default_scheme: AuthScheme = AuthScheme.API_KEY_HEADER

    def form_fields(self) -> dict[str, str]:
        return {}

    def build_request(
        self, content: bytes, filename: str, mime_type: str, credential: ProviderCredential
    ) -> ProviderRequest:
        return ProviderRequest(
            url=self.url,
            headers=credential.auth_headers(),
            files={self.file_field: (filename, content, mime_type)},
            data=self.form_fields(),
            auth=credential.basic_auth(),
        )

    def map_error(self, status: int, body: str) -> ErrorKind:
        return _STATUS_TO_KIND.get(status, ErrorKind.PROVIDER_ERROR)

    def error_message(self, response: httpx.Response) -> str | None:
        return None

    def describe_error(self, response: httpx.Response) -> str:
        status = response.status_code
        message = self.error_message(response)
        if message:
            return f"{self.label} returned {status}: {message}"
        return f"{self.label} returned {status}: {truncate_body(response.text)}"


class RemoveBgAdapter(ProviderAdapter):
    name = "removebg"
    label = "remove.bg"
    url = "https://api.remove.bg/v1.0/removebg"
    file_field = "image_file"
    default_scheme = AuthScheme.API_KEY_HEADER

    def form_fields(self) -> dict[str, str]:
        return {"size": "auto"}

    def error_message(self, response: httpx.Response) -> str | None:
        # {"errors": [{"title": "...", "code": "..."}]}
        payload = _parse_json(response)
        if not isinstance(payload, dict):
            return None
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            title = errors[0].get("title")
            return str(title) if title else None
        return None


class PixianAdapter(ProviderAdapter):
    name = "pixian"
    label = "Pixian.ai"
    url = "https://api.pixian.ai/api/v2/remove-background"
    file_field = "image"
    default_scheme = AuthScheme.BASIC

    def error_message(self, response: httpx.Response) -> str | None:
        # {"error": {"status": 400, "code": 1006, "message": "..."}}
        payload = _parse_json(response)
        if not isinstance(payload, dict):
            return None
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return None


ADAPTERS: dict[str, type[ProviderAdapter]] = {
    RemoveBgAdapter.name: RemoveBgAdapter,
    PixianAdapter.name: PixianAdapter,
}


def get_adapter(name: str) -> ProviderAdapter:
    try:
        return ADAPTERS[name]()
    except KeyError:
        raise ValueError(f"Unknown background removal provider: {name}") from None
