"""
Aggregation Engine
Computes the deduplicated rating aggregate for a product by blending the
reviews it owns directly with the syndicated copies placed on it.
"""

from decimal import Decimal
from typing import Dict, List

from app.core.logger import logger
from app.models.aggregate import Aggregate, AggregateKey, RatingSource
from app.models.review import Review, ReviewStatus
from app.repositories.base import ReviewFilter
from app.schemas.review import PublishedReview, ShopSummary
from app.services.base import StoreBackedService
from app.validators.review_validators import normalize_product_id


class AggregationEngine(StoreBackedService):
    """Read-only: fetches approved reviews for a product and summarizes them"""

    async def _approved_entries(self, product_id: str) -> Dict[AggregateKey, Review]:
        """
        Approved reviews attributable to the product, keyed so that direct
        reviews and syndicated copies never share a key.
        """
        direct = await self._call(
            "aggregate direct reviews",
            self.store.list_reviews(ReviewFilter(
                product_id=product_id,
                status=ReviewStatus.APPROVED,
                is_syndicated=False,
            ))
        )
        links = await self._call(
            "aggregate syndication links",
            self.store.list_links_by_product(product_id)
        )

        copies: Dict[str, Review] = {}
        if links:
            approved_copies = await self._call(
                "aggregate syndicated copies",
                self.store.list_reviews(ReviewFilter(
                    ids=[link.copy_review_id for link in links],
                    status=ReviewStatus.APPROVED,
                ))
            )
            copies = {copy.id: copy for copy in approved_copies}

        entries: Dict[AggregateKey, Review] = {}
        for review in direct:
            entries[AggregateKey(RatingSource.DIRECT, "", review.id)] = review
        for link in links:
            copy = copies.get(link.copy_review_id)
            if copy is None:
                continue
            key = AggregateKey(RatingSource.SYNDICATED, link.bundle_product_id, link.original_review_id)
            entries[key] = copy
        return entries

    async def compute_aggregate(self, product_id: str) -> Aggregate:
        """Deduplicated count and mean rating for one product"""
        product_id = normalize_product_id(product_id)
        entries = await self._approved_entries(product_id)

        count = len(entries)
        total = sum(review.rating for review in entries.values())
        mean = Decimal(total) / Decimal(count) if count else Decimal(0)
        aggregate = Aggregate(product_id=product_id, count=count, mean=mean)

        logger.info(
            f"Computed review aggregate for product {product_id}",
            metadata={
                "event": "aggregate_computed",
                "productId": product_id,
                "count": count,
                "rating": aggregate.display_rating,
                "syndicated": sum(1 for key in entries if key.source == RatingSource.SYNDICATED),
            }
        )
        return aggregate

    async def list_published_reviews(self, product_id: str) -> List[PublishedReview]:
        """Approved reviews shown on a product page, newest first"""
        product_id = normalize_product_id(product_id)
        entries = await self._approved_entries(product_id)
        reviews = sorted(entries.values(), key=lambda review: review.created_at, reverse=True)
        return [PublishedReview.from_review(review, product_id) for review in reviews]

    async def summarize_shop(self) -> ShopSummary:
        """Approved original reviews across the shop with their plain average"""
        reviews = await self._call(
            "shop review summary",
            self.store.list_reviews(ReviewFilter(status=ReviewStatus.APPROVED, is_syndicated=False))
        )
        reviews = sorted(reviews, key=lambda review: (review.rating, review.created_at), reverse=True)
        total = len(reviews)
        mean = Decimal(sum(review.rating for review in reviews)) / Decimal(total) if total else Decimal(0)
        return ShopSummary(
            reviews=reviews,
            average_rating=Aggregate(product_id="*", count=total, mean=mean).display_rating,
            total_reviews=total,
        )
