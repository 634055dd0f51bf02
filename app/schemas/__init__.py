"""
Schemas module initialization
"""

from .review import (
    ImageInput,
    ReviewCreate,
    ReviewEdit,
    StatusChange,
    LifecycleResponse,
    SubmitResponse,
    PublishedReview,
    ShopSummary,
    AggregateResponse,
)
from .bundle import BundleCreate

__all__ = [
    "ImageInput",
    "ReviewCreate",
    "ReviewEdit",
    "StatusChange",
    "LifecycleResponse",
    "SubmitResponse",
    "PublishedReview",
    "ShopSummary",
    "AggregateResponse",
    "BundleCreate",
]
