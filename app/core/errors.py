"""
Error handling utilities following FastAPI best practices
"""

import traceback
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.config import config
from app.core.logger import logger


class ErrorResponse(Exception):
    """Custom exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFound(ErrorResponse):
    """A review, bundle or syndication link does not exist"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=404, details=details)


class InvalidInput(ErrorResponse):
    """Validation failed before any mutation was attempted"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class StoreUnavailable(ErrorResponse):
    """The review store failed or did not answer in time"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)


class CatalogPublishFailed(ErrorResponse):
    """The aggregate was computed but the catalog rejected or missed the write"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=502, details=details)


class DuplicateLink(Exception):
    """
    Raised by a store when a syndication link for the same
    (original review, target product) pair already exists.
    """

    def __init__(self, original_review_id: str, product_id: str):
        self.original_review_id = original_review_id
        self.product_id = product_id
        super().__init__(
            f"Syndication link already exists for review {original_review_id} "
            f"on product {product_id}"
        )


def validation_details(exc) -> Dict[str, Any]:
    """Flatten a pydantic ValidationError into {field: message}"""
    details: Dict[str, Any] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        details[field] = err.get("msg", "Invalid value").removeprefix("Value error, ")
    return details


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    details: Optional[dict] = None


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for custom ErrorResponse exceptions"""
    metadata = {
        "event": "error_response",
        "status_code": exc.status_code,
        "url": str(request.url),
        "method": request.method,
        **exc.details,
    }

    if config.environment == "development":
        metadata["traceback"] = traceback.format_exc()

    logger.error(
        f"Error: {exc.message}",
        metadata=metadata
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details}
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    metadata = {
        "event": "http_exception",
        "status_code": exc.status_code,
        "url": str(request.url),
        "method": request.method,
    }

    logger.error(
        f"HTTPException: {exc.detail}",
        metadata=metadata
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )
