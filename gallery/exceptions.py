"""
    Centralized exception handling for the FastAPI application.
"""
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class ImageNotFoundException(APIException):
    """Exception for when an image is not found."""
    def __init__(self, key: str):
        super().__init__(status_code=404, detail=f"Image '{key}' not found.")

class UnsupportedContentException(APIException):
    """Upload is empty or not classified as an image. Nothing was stored."""
    def __init__(self, detail: str = "Only image files may be uploaded"):
        super().__init__(status_code=400, detail=detail)

class InvalidImageException(APIException):
    """Exception for bytes that cannot be decoded as a raster image."""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class StorageWriteException(APIException):
    """Exception for object store write failures."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class StorageReadException(APIException):
    """Exception for object store read failures."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class AnalysisUnavailableException(APIException):
    """The image analysis service could not be reached or refused the request."""
    def __init__(self, detail: str):
        super().__init__(status_code=502, detail=detail)

class AnalysisEmptyException(APIException):
    """The image analysis service returned no caption candidates."""
    def __init__(self, detail: str = "Image analysis returned no captions"):
        super().__init__(status_code=502, detail=detail)

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions. Client errors are logged without a traceback."""
    if exc.status_code < 500:
        log.warning(f"{request.method} {request.url.path} rejected: {exc.detail}")
    else:
        log.error(f"API Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred."},
    )

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
