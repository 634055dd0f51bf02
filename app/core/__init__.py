"""
Core module initialization
"""

from .config import config
from .errors import (
    ErrorResponse,
    ErrorResponseModel,
    NotFound,
    InvalidInput,
    StoreUnavailable,
    CatalogPublishFailed,
    DuplicateLink,
)
from .logger import logger

__all__ = [
    "config",
    "ErrorResponse",
    "ErrorResponseModel",
    "NotFound",
    "InvalidInput",
    "StoreUnavailable",
    "CatalogPublishFailed",
    "DuplicateLink",
    "logger",
]
