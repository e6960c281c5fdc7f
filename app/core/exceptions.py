"""
Custom exception handlers and error types
"""

from datetime import datetime
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging
import traceback
from typing import List, Optional

logger = logging.getLogger(__name__)


class ImageScraperError(Exception):
    """Base exception for the image search & store service"""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code or self.default_code
        self.processing_time_ms: Optional[int] = None
        super().__init__(self.message)


class InputError(ImageScraperError):
    """Exception raised when the caller supplies a bad keyword/count"""

    status_code = 400
    default_code = "INVALID_REQUEST"


class ConfigurationError(ImageScraperError):
    """Exception raised when configuration is invalid"""

    default_code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key


# ---------------------------------------------------------------------------
# Search layer
# ---------------------------------------------------------------------------


class SearchError(ImageScraperError):
    """Base class for failures of a single search attempt"""

    status_code = 503
    default_code = "PROVIDER_ERROR"


class SessionError(SearchError):
    """Session token could not be extracted from the search page"""


class ProviderError(SearchError):
    """Provider answered with a non-2xx status or an unusable body"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class EmptyResultsError(ProviderError):
    """Provider returned no images, or none survived filtering"""

    status_code = 404
    default_code = "NO_IMAGES_FOUND"


class NetworkError(SearchError):
    """Timeout, DNS or connection failure while talking to the provider"""

    default_code = "NETWORK_ERROR"

    def __init__(self, message: str, timeout: bool = False):
        super().__init__(message, "REQUEST_TIMEOUT" if timeout else None)
        self.timeout = timeout
        if timeout:
            self.status_code = 408


class ExhaustedRetriesError(ImageScraperError):
    """Every search attempt failed

    Args:
        attempts (int): Number of attempts performed
        last_cause (Exception): Error of the final attempt
        causes (list): Errors of all attempts, in order

    The HTTP classification is inherited from ``last_cause`` so that the
    client can tell timeouts and network outages from empty searches.
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_cause: Optional[Exception] = None,
        causes: Optional[List[Exception]] = None,
    ):
        if isinstance(last_cause, ImageScraperError):
            code = last_cause.error_code
            self.status_code = last_cause.status_code
        else:
            code = "PROVIDER_ERROR"
            self.status_code = 503
        super().__init__(message, code)
        self.attempts = attempts
        self.last_cause = last_cause
        self.causes = causes or []


class NoCandidatesFound(ImageScraperError):
    """Search succeeded but produced nothing to acquire"""

    status_code = 404
    default_code = "NO_IMAGES_FOUND"


# ---------------------------------------------------------------------------
# Fetch / transform / store layer (per candidate, never surfaced directly)
# ---------------------------------------------------------------------------


class PipelineItemError(ImageScraperError):
    """Base class for a single candidate failing in the pipeline"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class DownloadError(PipelineItemError):
    """Exception raised when an image download fails"""


class DownloadTimeout(DownloadError):
    """Image took too long to download"""


class TransformError(PipelineItemError):
    """Image could not be decoded or re-encoded"""


class StoreError(PipelineItemError):
    """BlobSink rejected or failed to persist the bytes"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class AllStorageFailed(ImageScraperError):
    """Exception raised when no candidate could be stored"""

    default_code = "UPLOAD_FAILED"

    def __init__(self, message: str, total: int = 0):
        super().__init__(message)
        self.total = total


def _error_body(message: str, code: str) -> dict:
    return {
        "success": False,
        "error": message,
        "code": code,
        "timestamp": datetime.now().isoformat(),
    }


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning(f"Validation error: {exc.errors()}")
    body = _error_body("Invalid request data", "INVALID_REQUEST")
    body["errors"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=400, content=body)


async def image_scraper_exception_handler(request: Request, exc: ImageScraperError):
    """Render domain errors with their classified status and code"""
    if exc.status_code >= 500:
        logger.error(f"❌ Error processing request: {exc.message} ({exc.error_code})")
    else:
        logger.warning(f"Request failed: {exc.message} ({exc.error_code})")
    body = _error_body(exc.message, exc.error_code)
    if exc.processing_time_ms is not None:
        body["processing_time_ms"] = exc.processing_time_ms
    return JSONResponse(status_code=exc.status_code, content=body)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.error(f"Unexpected error: {type(exc).__name__}: {str(exc)}")
    logger.error(f"Traceback: {traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", "INTERNAL_ERROR"),
    )
