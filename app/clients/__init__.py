"""
Clients Package
External service clients for inter-service communication.
"""

from .catalog_client import CatalogPublisher, DaprCatalogPublisher

__all__ = [
    "CatalogPublisher",
    "DaprCatalogPublisher",
]
