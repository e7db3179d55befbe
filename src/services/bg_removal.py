import time

import httpx
import structlog

from src.core.exceptions import ErrorKind, ProviderFailure
from src.services.providers import ProviderAdapter, ProviderCredential
from src.services.temp_store import UploadedImage

logger = structlog.get_logger()


class BackgroundRemovalClient:
    def __init__(
        self,
        adapter: ProviderAdapter,
        credential: ProviderCredential | None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.adapter = adapter
        self.credential = credential
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    @property
    def configured(self) -> bool:
        return self.credential is not None

    async def remove_background(self, image: UploadedImage) -> bytes:
        if self.credential is None:
            raise ProviderFailure(ErrorKind.CONFIGURATION_ERROR, detail="No provider credential configured")

        request = self.adapter.build_request(
            content=image.temporary_path.read_bytes(),
            filename=image.original_name,
            mime_type=image.mime_type,
            credential=self.credential,
        )

        started = time.perf_counter()
        try:
            response = await self._client.post(
                request.url, headers=request.headers, files=request.files, data=request.data, auth=request.auth
            )
        except httpx.TimeoutException as e:
            logger.warning("provider_request_timeout", provider=self.adapter.name, timeout=self.timeout)
            raise ProviderFailure(ErrorKind.TIMEOUT, detail=f"{self.adapter.label} timed out: {e!r}") from e
        except httpx.TransportError as e:
            logger.warning("provider_unreachable", provider=self.adapter.name, error=str(e))
            raise ProviderFailure(
                ErrorKind.SERVICE_UNAVAILABLE, detail=f"{self.adapter.label} unreachable: {e!r}"
            ) from e

        elapsed = round(time.perf_counter() - started, 3)
        if response.status_code == 200:
            logger.info(
                "provider_request_succeeded",
                provider=self.adapter.name,
                elapsed=elapsed,
                size=len(response.content),
            )
            return response.content

        kind = self.adapter.map_error(response.status_code, response.text)
        detail = self.adapter.describe_error(response)
        logger.warning(
            "provider_request_failed",
            provider=self.adapter.name,
            status=response.status_code,
            kind=kind.value,
            elapsed=elapsed,
            detail=detail,
        )
        raise ProviderFailure(kind, status=response.status_code, detail=detail)

    async def aclose(self) -> None:
        await self._client.aclose()
