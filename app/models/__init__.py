"""
Models module initialization
"""

from .review import Review, ReviewImage, ReviewStatus, Scope
from .bundle import Bundle, SyndicationLink
from .aggregate import (
    Aggregate,
    AggregateKey,
    RatingSource,
    SweepFailure,
    SweepResult,
    PublishResult,
    ProductRefresh,
)

__all__ = [
    "Review",
    "ReviewImage",
    "ReviewStatus",
    "Scope",
    "Bundle",
    "SyndicationLink",
    "Aggregate",
    "AggregateKey",
    "RatingSource",
    "SweepFailure",
    "SweepResult",
    "PublishResult",
    "ProductRefresh",
]
