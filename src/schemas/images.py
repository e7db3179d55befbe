from pydantic import BaseModel


class RemoveBackgroundResponse(BaseModel):
    success: bool = True
    image: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: str | None = None
