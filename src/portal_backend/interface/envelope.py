from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiError(BaseModel):
    code: str
    message: str


class ApiEnvelope(BaseModel, Generic[T]):
    """Response wrapper used by the external backend and by this service."""
    success: bool
    data: Optional[T] = None
    error: Optional[ApiError] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ApiEnvelope":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str) -> "ApiEnvelope":
        return cls(success=False, error=ApiError(code=code, message=message))
