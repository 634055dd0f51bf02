"""
Services module initialization
"""

from .aggregation import AggregationEngine
from .bundles import BundleService
from .lifecycle import ReviewLifecycleService
from .syndication import SyndicationEngine

__all__ = [
    "AggregationEngine",
    "BundleService",
    "ReviewLifecycleService",
    "SyndicationEngine",
]
