import httpx
import pytest

from src.core.exceptions import ErrorKind
from src.services.providers import (
    AuthScheme,
    PixianAdapter,
    ProviderCredential,
    RemoveBgAdapter,
    get_adapter,
    truncate_body,
)


class TestCredentialHeaders:
    def test_api_key_header(self) -> None:
        credential = ProviderCredential(scheme=AuthScheme.API_KEY_HEADER, value="k")
        assert credential.auth_headers() == {"X-Api-Key": "k"}

    def test_bearer(self) -> None:
        credential = ProviderCredential(scheme=AuthScheme.BEARER, value="t")
        assert credential.auth_headers() == {"Authorization": "Bearer t"}

    def test_basic_uses_httpx_auth(self) -> None:
        credential = ProviderCredential(scheme=AuthScheme.BASIC, value="id", secret="secret")
        assert credential.auth_headers() == {}
        auth = credential.basic_auth()
        assert isinstance(auth, httpx.BasicAuth)
        request = next(auth.auth_flow(httpx.Request("POST", "https://example.com")))
        assert request.headers["Authorization"] == "Basic aWQ6c2VjcmV0"

    def test_header_schemes_have_no_basic_auth(self) -> None:
        for scheme in (AuthScheme.API_KEY_HEADER, AuthScheme.BEARER):
            credential = ProviderCredential(scheme=scheme, value="v", secret="s")
            assert len(credential.auth_headers()) == 1
            assert credential.basic_auth() is None


class TestBuildRequest:
    def test_removebg_fields(self) -> None:
        credential = ProviderCredential(scheme=AuthScheme.API_KEY_HEADER, value="k")
        request = RemoveBgAdapter().build_request(b"img", "a.png", "image/png", credential)
        assert request.url == "https://api.remove.bg/v1.0/removebg"
        assert request.files == {"image_file": ("a.png", b"img", "image/png")}
        assert request.data == {"size": "auto"}
        assert request.headers == {"X-Api-Key": "k"}

    def test_pixian_fields(self) -> None:
        credential = ProviderCredential(scheme=AuthScheme.BASIC, value="id", secret="s")
        request = PixianAdapter().build_request(b"img", "a.jpg", "image/jpeg", credential)
        assert request.url == "https://api.pixian.ai/api/v2/remove-background"
        assert request.files == {"image": ("a.jpg", b"img", "image/jpeg")}
        assert request.data == {}
        assert request.headers == {}
        assert isinstance(request.auth, httpx.BasicAuth)


class TestMapError:
    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (400, ErrorKind.INVALID_IMAGE),
            (401, ErrorKind.AUTHENTICATION_FAILED),
            (402, ErrorKind.QUOTA_EXHAUSTED),
            (403, ErrorKind.AUTHENTICATION_FAILED),
            (429, ErrorKind.RATE_LIMITED),
            (404, ErrorKind.PROVIDER_ERROR),
            (500, ErrorKind.PROVIDER_ERROR),
            (502, ErrorKind.PROVIDER_ERROR),
        ],
    )
    def test_status_mapping(self, status: int, kind: ErrorKind) -> None:
        assert RemoveBgAdapter().map_error(status, "") is kind
        assert PixianAdapter().map_error(status, "") is kind


class TestDescribeError:
    def test_removebg_errors_title(self) -> None:
        body = '{"errors": [{"title": "Insufficient credits", "code": "insufficient_credits"}]}'
        detail = RemoveBgAdapter().describe_error(httpx.Response(402, text=body))
        assert detail == "remove.bg returned 402: Insufficient credits"

    def test_pixian_error_message(self) -> None:
        body = '{"error": {"status": 401, "code": 1001, "message": "Invalid API credentials"}}'
        detail = PixianAdapter().describe_error(httpx.Response(401, text=body))
        assert detail == "Pixian.ai returned 401: Invalid API credentials"

    def test_non_json_body_is_truncated(self) -> None:
        detail = RemoveBgAdapter().describe_error(httpx.Response(500, text="x" * 2000))
        assert detail.startswith("remove.bg returned 500: ")
        assert detail.endswith("...")
        assert len(detail) < 600

    def test_unexpected_json_shape(self) -> None:
        assert RemoveBgAdapter().describe_error(httpx.Response(500, text="[1, 2]")) == "remove.bg returned 500: [1, 2]"


class TestGetAdapter:
    def test_known(self) -> None:
        assert isinstance(get_adapter("removebg"), RemoveBgAdapter)
        assert isinstance(get_adapter("pixian"), PixianAdapter)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            get_adapter("photoroom")


def test_truncate_body_short() -> None:
    assert truncate_body("short") == "short"
