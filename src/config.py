from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.services.providers import AuthScheme, ProviderCredential, get_adapter


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "bg-removal-relay"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "info"
    cors_origins: list[str] = [
        "https://background-remover-frontview.vercel.app",
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    provider: Literal["removebg", "pixian"] = "removebg"
    provider_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("provider_api_key", "remove_bg_api_key", "pixian_api_id"),
    )
    provider_api_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("provider_api_secret", "pixian_api_secret"),
    )
    provider_auth_scheme: AuthScheme | None = None
    provider_timeout: float = 60.0

    uploads_path: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_mime_types: list[str] = ["image/jpeg", "image/jpg", "image/png", "image/webp"]
    stale_upload_ttl: float = 3600.0

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def credential(self) -> ProviderCredential | None:
        if not self.provider_api_key:
            return None
        scheme = self.provider_auth_scheme or get_adapter(self.provider).default_scheme
        if scheme is AuthScheme.BASIC and not self.provider_api_secret:
            return None
        return ProviderCredential(scheme=scheme, value=self.provider_api_key, secret=self.provider_api_secret)


settings = Settings()
