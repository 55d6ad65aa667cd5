from typing import Any, Dict, Optional

from fastapi import status


class CatalogError(Exception):
    """Base error for catalog operations; rendered once by the app-level handler."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationError(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(CatalogError):
    # Uniqueness violations are reported as bad requests to existing clients
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "data": None, "error": self.message}


class Unauthenticated(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(CatalogError):
    status_code = status.HTTP_403_FORBIDDEN


class StorageError(CatalogError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
