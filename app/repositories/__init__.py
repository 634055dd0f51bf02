"""
Repositories module initialization
"""

from .base import ReviewFilter, ReviewStore
from .review import MongoReviewStore

__all__ = [
    "ReviewFilter",
    "ReviewStore",
    "MongoReviewStore",
]
