"""Shared test fixtures: an in-memory review store and a recording catalog publisher"""
import asyncio
import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from pydantic import ValidationError

from app.clients.catalog_client import CatalogPublisher
from app.core.errors import CatalogPublishFailed, DuplicateLink, InvalidInput, NotFound, validation_details
from app.models.aggregate import Aggregate, PublishResult
from app.models.bundle import Bundle, SyndicationLink
from app.models.review import Review
from app.repositories.base import ReviewFilter, ReviewStore

SHOP = "test-shop.myshopify.com"
EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class InMemoryReviewStore(ReviewStore):
    """
    ReviewStore test double. Every call yields to the event loop once so that
    concurrent coroutines interleave. Link creation enforces the
    one-link-per-(original, product) rule.

    `failures` maps (method, first argument) to an exception to raise;
    use None as the argument to fail every call of the method.
    """

    def __init__(self, shop: str = SHOP):
        self.shop = shop
        self.reviews: Dict[str, Review] = {}
        self.bundles: Dict[str, Bundle] = {}
        self.links: Dict[str, SyndicationLink] = {}
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[str] = []
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    async def _enter(self, method: str, key: Any = None):
        self.calls.append(method)
        await asyncio.sleep(0)
        error = self.failures.get((method, key)) or self.failures.get((method, None))
        if error is not None:
            raise error

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def _now(self) -> datetime:
        return EPOCH + timedelta(seconds=next(self._clock))

    @staticmethod
    def _prepare_images(images):
        prepared = []
        for position, image in enumerate(images or []):
            image = dict(image)
            image.setdefault("id", uuid.uuid4().hex)
            image.setdefault("order", position)
            prepared.append(image)
        return prepared

    # Reviews

    async def get_review(self, review_id: str) -> Review:
        await self._enter("get_review", review_id)
        if review_id not in self.reviews:
            raise NotFound("Review not found", details={"review_id": review_id})
        return self.reviews[review_id]

    async def create_review(self, fields: Dict[str, Any]) -> Review:
        await self._enter("create_review", fields.get("product_id"))
        now = self._now()
        fields = dict(fields)
        fields["images"] = self._prepare_images(fields.get("images"))
        review = Review(id=self._next_id("r"), shop=self.shop, created_at=now, updated_at=now, **fields)
        self.reviews[review.id] = review
        return review

    async def update_review(self, review_id: str, fields: Dict[str, Any]) -> Review:
        await self._enter("update_review", review_id)
        if review_id not in self.reviews:
            raise NotFound("Review not found", details={"review_id": review_id})
        fields = dict(fields)
        if "images" in fields:
            fields["images"] = self._prepare_images(fields["images"])
        data = {**self.reviews[review_id].model_dump(), **fields, "updated_at": self._now()}
        review = Review(**data)
        self.reviews[review_id] = review
        return review

    async def delete_review(self, review_id: str) -> None:
        await self._enter("delete_review", review_id)
        self.reviews.pop(review_id, None)

    def _matches(self, review: Review, review_filter: ReviewFilter) -> bool:
        if review.shop != (review_filter.shop or self.shop):
            return False
        if review_filter.ids is not None and review.id not in review_filter.ids:
            return False
        if review_filter.product_id is not None and review.product_id != review_filter.product_id:
            return False
        if review_filter.status is not None and review.status != review_filter.status:
            return False
        if review_filter.is_syndicated is not None and review.is_syndicated != review_filter.is_syndicated:
            return False
        return True

    async def list_reviews(self, review_filter: ReviewFilter) -> List[Review]:
        await self._enter("list_reviews", review_filter.product_id)
        matched = [r for r in self.reviews.values() if self._matches(r, review_filter)]
        return sorted(matched, key=lambda r: r.created_at, reverse=True)

    async def count_reviews(self, review_filter: ReviewFilter) -> int:
        return len(await self.list_reviews(review_filter))

    # Bundles

    async def get_bundle(self, bundle_id: str) -> Bundle:
        await self._enter("get_bundle", bundle_id)
        if bundle_id not in self.bundles:
            raise NotFound("Bundle not found", details={"bundle_id": bundle_id})
        return self.bundles[bundle_id]

    async def get_bundle_by_product(self, product_id: str) -> Optional[Bundle]:
        await self._enter("get_bundle_by_product", product_id)
        for bundle in self.bundles.values():
            if product_id in bundle.product_ids:
                return bundle
        return None

    async def list_bundles(self) -> List[Bundle]:
        await self._enter("list_bundles")
        return sorted(self.bundles.values(), key=lambda b: b.name)

    async def save_bundle(self, fields: Dict[str, Any]) -> Bundle:
        await self._enter("save_bundle", fields.get("name"))
        existing = next((b for b in self.bundles.values() if b.name == fields.get("name")), None)
        try:
            bundle = Bundle(id=existing.id if existing else self._next_id("b"), shop=self.shop, **fields)
        except ValidationError as e:
            raise InvalidInput("Invalid bundle definition", details=validation_details(e))
        self.bundles[bundle.id] = bundle
        return bundle

    async def delete_bundle(self, bundle_id: str) -> bool:
        await self._enter("delete_bundle", bundle_id)
        return self.bundles.pop(bundle_id, None) is not None

    # Links

    async def find_link(self, original_review_id: str, product_id: str) -> Optional[SyndicationLink]:
        await self._enter("find_link", original_review_id)
        for link in self.links.values():
            if link.original_review_id == original_review_id and link.product_id == product_id:
                return link
        return None

    async def list_links(self, original_review_id: str) -> List[SyndicationLink]:
        await self._enter("list_links", original_review_id)
        return [link for link in self.links.values() if link.original_review_id == original_review_id]

    async def list_links_by_product(self, product_id: str) -> List[SyndicationLink]:
        await self._enter("list_links_by_product", product_id)
        return [link for link in self.links.values() if link.product_id == product_id]

    async def find_link_by_copy(self, copy_review_id: str) -> Optional[SyndicationLink]:
        await self._enter("find_link_by_copy", copy_review_id)
        return next((link for link in self.links.values() if link.copy_review_id == copy_review_id), None)

    async def create_link(self, fields: Dict[str, Any]) -> SyndicationLink:
        await self._enter("create_link", fields.get("product_id"))
        for link in self.links.values():
            if (link.original_review_id, link.product_id) == (fields["original_review_id"], fields["product_id"]):
                raise DuplicateLink(fields["original_review_id"], fields["product_id"])
        link = SyndicationLink(id=self._next_id("l"), shop=self.shop, created_at=self._now(), **fields)
        self.links[link.id] = link
        return link

    async def delete_link(self, link_id: str) -> None:
        await self._enter("delete_link", link_id)
        self.links.pop(link_id, None)

    # Helpers for tests

    def copies_of(self, original_review_id: str) -> Dict[str, Review]:
        """{target product: copy} for every linked copy still present"""
        return {
            link.product_id: self.reviews[link.copy_review_id]
            for link in self.links.values()
            if link.original_review_id == original_review_id and link.copy_review_id in self.reviews
        }


class RecordingCatalogPublisher(CatalogPublisher):
    """Records every publish; products in `failing` raise CatalogPublishFailed"""

    def __init__(self):
        self.published: Dict[str, Aggregate] = {}
        self.calls: List[str] = []
        self.failing: set = set()

    async def publish(self, product_id: str, aggregate: Aggregate) -> PublishResult:
        self.calls.append(product_id)
        if product_id in self.failing:
            raise CatalogPublishFailed(
                f"Catalog rejected aggregate for product {product_id}",
                details={"product_id": product_id}
            )
        self.published[product_id] = aggregate
        return PublishResult(product_id=product_id, rating=aggregate.display_rating, count=aggregate.count)


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def publisher():
    return RecordingCatalogPublisher()


@pytest.fixture
def add_review(store):
    """Insert a review directly into the store"""
    async def _add(product_id="101", rating=5, status="pending", **fields):
        data = {
            "product_id": product_id,
            "rating": rating,
            "author": "Jordan",
            "email": "jordan@example.com",
            "title": "Solid",
            "content": "Does what it says",
            "status": status,
            "is_syndicated": False,
            **fields,
        }
        return await store.create_review(data)
    return _add


@pytest.fixture
def add_bundle(store):
    """Create a bundle; the primary product defaults to the first member"""
    async def _add(product_ids=("101", "102", "103"), name="Starter Kit", bundle_product_id=None):
        return await store.save_bundle({
            "name": name,
            "product_ids": list(product_ids),
            "bundle_product_id": bundle_product_id or product_ids[0],
        })
    return _add


@pytest.fixture
def review_payload():
    """Valid storefront submission body"""
    return {
        "product_id": "gid://shopify/Product/101",
        "rating": 4,
        "author": "Jordan",
        "email": "jordan@example.com",
        "title": "Nice",
        "content": "Works well for the price",
        "images": [],
    }
