"""
Review Lifecycle Service
Applies moderation actions (submit, status change, edit, delete) at individual
or bundle scope, then re-aggregates and republishes every affected product.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.clients.catalog_client import CatalogPublisher
from app.core.config import config
from app.core.errors import CatalogPublishFailed, InvalidInput, NotFound, StoreUnavailable, validation_details
from app.core.logger import logger
from app.models.aggregate import ProductRefresh, SweepResult
from app.models.bundle import Bundle
from app.models.review import Review, ReviewStatus, Scope
from app.schemas.review import ImageInput, LifecycleResponse, ReviewCreate, ReviewEdit
from app.services.aggregation import AggregationEngine
from app.services.base import StoreBackedService
from app.services.syndication import SyndicationEngine


def _validated(schema, payload: Dict[str, Any]):
    try:
        return schema(**payload)
    except ValidationError as e:
        details = validation_details(e)
        raise InvalidInput(
            next(iter(details.values()), "Invalid review data"),
            details=details
        )


class ReviewLifecycleService(StoreBackedService):
    """Orchestrates review mutations with syndication and aggregate refresh"""

    def __init__(
        self,
        store,
        publisher: CatalogPublisher,
        syndication: Optional[SyndicationEngine] = None,
        aggregation: Optional[AggregationEngine] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(store, timeout)
        self.publisher = publisher
        self.syndication = syndication or SyndicationEngine(store, self.timeout)
        self.aggregation = aggregation or AggregationEngine(store, self.timeout)

    async def _bundle_for(self, review: Review) -> Optional[Bundle]:
        return await self._call("resolve bundle", self.store.get_bundle_by_product(review.product_id))

    async def _original_id(self, review: Review) -> Optional[str]:
        if not review.is_syndicated:
            return review.id
        return await self.syndication.find_original(review.id)

    @staticmethod
    def _affected_products(review: Review, bundle: Optional[Bundle], scope: Scope) -> List[str]:
        products = [review.product_id]
        if bundle is not None and scope == Scope.BUNDLE:
            products.extend(p for p in bundle.product_ids if p not in products)
        return products

    async def _refresh_product(self, product_id: str) -> ProductRefresh:
        try:
            aggregate = await self.aggregation.compute_aggregate(product_id)
        except StoreUnavailable as e:
            logger.error(
                f"Could not re-aggregate product {product_id}",
                error=e,
                metadata={"event": "aggregate_refresh_failed", "productId": product_id}
            )
            return ProductRefresh(product_id=product_id, error_type=type(e).__name__, error=str(e))

        try:
            await self.publisher.publish(product_id, aggregate)
        except CatalogPublishFailed as e:
            return ProductRefresh(
                product_id=product_id, aggregate=aggregate,
                error_type=type(e).__name__, error=str(e)
            )
        return ProductRefresh(product_id=product_id, aggregate=aggregate, published=True)

    async def refresh_products(self, product_ids: List[str]) -> List[ProductRefresh]:
        """
        Re-aggregate and republish products concurrently. Failures are reported
        per product and never undo the mutation that triggered the refresh.
        """
        refreshed = await asyncio.gather(*(self._refresh_product(pid) for pid in product_ids))
        failed = [r.product_id for r in refreshed if not r.published]
        if failed:
            logger.warning(
                f"Aggregate refresh incomplete for {len(failed)} of {len(product_ids)} products",
                metadata={"event": "aggregate_refresh_incomplete", "failedProducts": failed}
            )
        return list(refreshed)

    @staticmethod
    def _image_documents(images: List[Any]) -> List[Dict[str, Any]]:
        documents = []
        for image in images[:config.review_max_images]:
            if isinstance(image, ImageInput):
                url, alt_text = image.url, image.alt_text
            else:
                url, alt_text = image, None
            order = len(documents)
            documents.append({
                "url": url,
                "alt_text": alt_text or f"Review image {order + 1}",
                "order": order,
            })
        return documents

    async def submit_review(self, payload: Dict[str, Any]) -> Tuple[Review, List[ProductRefresh]]:
        """Store a storefront submission as pending and republish its product"""
        submission = _validated(ReviewCreate, payload)

        review = await self._call("create review", self.store.create_review({
            "product_id": submission.product_id,
            "rating": submission.rating,
            "author": submission.author,
            "email": submission.email,
            "title": submission.title,
            "content": submission.content,
            "images": self._image_documents(submission.images),
            "status": ReviewStatus.PENDING,
            "is_syndicated": False,
            "bundle_context": None,
        }))

        logger.info(
            f"Review {review.id} submitted for product {review.product_id}",
            metadata={
                "event": "review_submitted",
                "reviewId": review.id,
                "productId": review.product_id,
                "rating": review.rating,
                "images": len(review.images),
            }
        )
        refreshed = await self.refresh_products([review.product_id])
        return review, refreshed

    async def _set_original_status(
        self, original_id: str, status: ReviewStatus, sweep: SweepResult
    ) -> Optional[Review]:
        """Update the original behind a copy; a missing original is recorded, not raised"""
        try:
            return await self._call(
                "update original status", self.store.update_review(original_id, {"status": status})
            )
        except NotFound as e:
            sweep.record_failure(original_id, e)
            logger.warning(
                f"Original review {original_id} is missing, skipping its status change",
                metadata={
                    "event": "original_review_missing",
                    "originalReviewId": original_id,
                    "status": status.value,
                }
            )
            return None

    async def change_status(self, review_id: str, status: ReviewStatus, scope: Scope) -> LifecycleResponse:
        review = await self._call("load review", self.store.get_review(review_id))
        bundle = await self._bundle_for(review)
        sweep: Optional[SweepResult] = None

        if bundle is not None and scope == Scope.BUNDLE:
            original_id = await self._original_id(review)
            if status == ReviewStatus.APPROVED and original_id is not None:
                if await self.syndication.is_first_approval(original_id):
                    sweep = await self.syndication.syndicate(original_id, bundle.id)
                else:
                    sweep = await self.syndication.propagate_status(original_id, status)
                updated = await self._set_original_status(original_id, status, sweep)
                if review.id != original_id:
                    updated = await self._call("reload review", self.store.get_review(review.id))
            else:
                updated = await self._call(
                    "update review status", self.store.update_review(review.id, {"status": status})
                )
                if original_id is not None:
                    sweep = SweepResult()
                    if original_id != review.id:
                        await self._set_original_status(original_id, status, sweep)
                    propagated = await self.syndication.propagate_status(original_id, status)
                    sweep.count += propagated.count
                    sweep.failures.extend(propagated.failures)
        else:
            updated = await self._call(
                "update review status", self.store.update_review(review.id, {"status": status})
            )

        affected = self._affected_products(review, bundle, scope)
        logger.info(
            f"Review {review.id} status set to {status.value}",
            metadata={
                "event": "review_status_changed",
                "reviewId": review.id,
                "status": status.value,
                "scope": scope.value,
                "bundleId": bundle.id if bundle else None,
                "affectedProducts": affected,
            }
        )
        refreshed = await self.refresh_products(affected)
        return LifecycleResponse(
            message=f"Review {status.value} successfully",
            review=updated,
            affected_products=affected,
            refreshed=refreshed,
            syndication=sweep,
        )

    async def edit_review(
        self,
        review_id: str,
        fields: Dict[str, Any],
        images_to_remove: Optional[List[str]],
        scope: Scope,
    ) -> LifecycleResponse:
        """
        Apply a moderator edit. Requested images are removed before the new
        field values are written. With bundle scope on an original, every
        existing copy is overwritten with the same values; no copies are
        created.
        """
        edit = _validated(ReviewEdit, fields)
        review = await self._call("load review", self.store.get_review(review_id))
        bundle = await self._bundle_for(review)

        removed = set(images_to_remove or [])
        kept_images = [image.model_dump() for image in review.images if image.id not in removed]
        update: Dict[str, Any] = {
            "title": edit.title,
            "content": edit.content,
            "rating": edit.rating,
            "author": edit.author,
            "email": edit.email,
            "images": kept_images,
        }
        if edit.status is not None:
            update["status"] = edit.status

        updated = await self._call("update review", self.store.update_review(review.id, update))

        sweep: Optional[SweepResult] = None
        if bundle is not None and scope == Scope.BUNDLE and not review.is_syndicated:
            propagated = updated.content_fields()
            if edit.status is not None:
                propagated["status"] = edit.status
            sweep = await self.syndication.propagate_fields(review.id, propagated)

        affected = self._affected_products(review, bundle, scope)
        logger.info(
            f"Review {review.id} edited",
            metadata={
                "event": "review_edited",
                "reviewId": review.id,
                "scope": scope.value,
                "imagesRemoved": len(review.images) - len(kept_images),
                "copiesUpdated": sweep.count if sweep else 0,
                "affectedProducts": affected,
            }
        )
        refreshed = await self.refresh_products(affected)
        return LifecycleResponse(
            message="Review updated successfully",
            review=updated,
            affected_products=affected,
            refreshed=refreshed,
            syndication=sweep,
        )

    async def delete_review(self, review_id: str, scope: Scope) -> LifecycleResponse:
        """
        Delete a review. Deleting an original always removes its copies, so
        no copy outlives the review it was made from.
        """
        review = await self._call("load review", self.store.get_review(review_id))
        bundle = await self._bundle_for(review)
        sweep: Optional[SweepResult] = None
        cascaded = False

        if bundle is None:
            await self._call("delete review", self.store.delete_review(review.id))
        elif scope == Scope.BUNDLE or not review.is_syndicated:
            original_id = await self._original_id(review)
            if original_id is None:
                await self._call("delete review", self.store.delete_review(review.id))
            else:
                sweep = await self.syndication.remove_all(original_id)
                await self._call("delete original review", self.store.delete_review(original_id))
                cascaded = True
        else:
            original_id = await self.syndication.find_original(review.id)
            removed = 0
            if original_id is not None:
                removed = await self.syndication.remove_for_product(original_id, review.product_id)
            if not removed:
                await self._call("delete review", self.store.delete_review(review.id))

        affected = self._affected_products(review, bundle, Scope.BUNDLE if cascaded else scope)
        logger.info(
            f"Review {review.id} deleted",
            metadata={
                "event": "review_deleted",
                "reviewId": review.id,
                "scope": scope.value,
                "copiesRemoved": sweep.count if sweep else 0,
                "affectedProducts": affected,
            }
        )
        refreshed = await self.refresh_products(affected)
        return LifecycleResponse(
            message="Review deleted successfully",
            affected_products=affected,
            refreshed=refreshed,
            syndication=sweep,
        )
