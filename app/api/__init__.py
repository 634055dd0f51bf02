"""
API module initialization
"""

from . import bundles, health, products, reviews

__all__ = ["bundles", "health", "products", "reviews"]
