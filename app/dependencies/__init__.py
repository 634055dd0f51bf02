"""
Dependencies module initialization
"""

from .review import (
    get_shop,
    get_review_store,
    get_catalog_publisher,
    get_lifecycle_service,
    get_aggregation_engine,
    get_bundle_service,
)

__all__ = [
    "get_shop",
    "get_review_store",
    "get_catalog_publisher",
    "get_lifecycle_service",
    "get_aggregation_engine",
    "get_bundle_service",
]
