from fastapi import HTTPException, status
from typing import Any, Dict, Optional

class NotFoundException(HTTPException):
    code = "MODULE_NOT_FOUND"

    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, detail or "Not found", headers)

class BadRequestException(HTTPException):
    code = "BAD_REQUEST"

    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail or "Bad request", headers)

class ServiceUnavailableException(HTTPException):
    code = "DIRECTORY_UNAVAILABLE"

    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, detail or "Service unavailable error", headers)

def error_code_for(exception: HTTPException) -> str:
    return getattr(exception, "code", None) or f"HTTP_{exception.status_code}"
