# Domain error taxonomy shared by services and the HTTP boundary
# catalog_api/core/exceptions.py

from enum import Enum
from typing import Dict, List, Optional


class ErrorKind(str, Enum):
    """Outcome classes a caller can tell apart."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    SERVER_FAULT = "server_fault"


class CatalogError(Exception):
    """
    Base class for expected failures raised by the service layer.

    Carries the error kind and a message that is safe to show to clients.
    Conversion to an HTTP status happens only in the handlers registered
    on the FastAPI application.
    """
    kind: ErrorKind = ErrorKind.SERVER_FAULT
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CatalogValidationError(CatalogError):
    """Input failed validation; `errors` maps field names to messages."""
    kind = ErrorKind.VALIDATION
    default_message = "One or more validation errors occurred."

    def __init__(self, message: Optional[str] = None, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.errors = errors or {}


class NoFileProvidedError(CatalogValidationError):
    default_message = "No file provided"


class MovieNotFoundError(CatalogError):
    """Custom exception when a movie is not found."""
    kind = ErrorKind.NOT_FOUND
    default_message = "Movie not found"


class UpstreamUploadError(CatalogError):
    """The external upload service answered with a non-success status."""
    kind = ErrorKind.UPSTREAM
    default_message = "Upload failed"

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code


class ServerFault(CatalogError):
    kind = ErrorKind.SERVER_FAULT


class ImageUrlMissingError(ServerFault):
    default_message = "Failed to get image URL from upload service"
