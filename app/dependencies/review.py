"""
Dependency injection for the review store, catalog publisher and services
"""

from fastapi import Depends, Request

from app.clients.catalog_client import CatalogPublisher, DaprCatalogPublisher
from app.core.config import config
from app.core.errors import InvalidInput
from app.db.mongodb import get_database
from app.repositories.base import ReviewStore
from app.repositories.review import MongoReviewStore
from app.services.aggregation import AggregationEngine
from app.services.bundles import BundleService
from app.services.lifecycle import ReviewLifecycleService


def get_shop(request: Request) -> str:
    """Tenant (shop domain) the request acts on"""
    shop = (request.headers.get(config.shop_header) or "").strip()
    if not shop:
        raise InvalidInput(
            f"Missing {config.shop_header} header",
            details={"header": config.shop_header}
        )
    return shop


async def get_review_store(shop: str = Depends(get_shop)) -> ReviewStore:
    """Get a review store scoped to the requesting shop"""
    database = await get_database()
    return MongoReviewStore(database, shop)


def get_catalog_publisher() -> CatalogPublisher:
    return DaprCatalogPublisher()


async def get_lifecycle_service(
    store: ReviewStore = Depends(get_review_store),
    publisher: CatalogPublisher = Depends(get_catalog_publisher),
) -> ReviewLifecycleService:
    return ReviewLifecycleService(store, publisher)


async def get_aggregation_engine(
    store: ReviewStore = Depends(get_review_store),
) -> AggregationEngine:
    return AggregationEngine(store)


async def get_bundle_service(
    store: ReviewStore = Depends(get_review_store),
) -> BundleService:
    return BundleService(store)
