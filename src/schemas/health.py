from pydantic import BaseModel, ConfigDict, Field


class ServerStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    timestamp: str
    api_key_configured: bool = Field(alias="apiKeyConfigured")


class HealthResponse(BaseModel):
    status: str = "OK"
    service: str
    timestamp: str
    provider: str
