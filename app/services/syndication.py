"""
Syndication Engine
Materializes an original review as independent copies on every other product
of its bundle, and keeps those copies in step with the original.
"""

from typing import Any, Dict, Optional

from app.core.errors import DuplicateLink, NotFound, StoreUnavailable
from app.core.logger import logger
from app.models.aggregate import SweepResult
from app.models.bundle import Bundle, SyndicationLink
from app.models.review import Review, ReviewStatus
from app.services.base import StoreBackedService

# Per-item errors a sweep records and moves past
SWEEP_ERRORS = (NotFound, StoreUnavailable)


class SyndicationEngine(StoreBackedService):
    """Maintains syndicated copies and their links for one shop"""

    @staticmethod
    def bundle_context(bundle: Bundle, original: Review) -> str:
        return f"Syndicated from {bundle.name} (Original: {original.id})"

    def _copy_fields(self, original: Review, bundle: Bundle, product_id: str) -> Dict[str, Any]:
        return {
            **original.content_fields(),
            "product_id": product_id,
            "status": ReviewStatus.APPROVED,
            "is_syndicated": True,
            "bundle_context": self.bundle_context(bundle, original),
        }

    async def _refresh_copy(self, link: SyndicationLink, original: Review, bundle: Bundle) -> Review:
        return await self._call(
            "refresh syndicated copy",
            self.store.update_review(link.copy_review_id, {
                **original.content_fields(),
                "status": ReviewStatus.APPROVED,
                "bundle_context": self.bundle_context(bundle, original),
            })
        )

    async def _create_copy(self, original: Review, bundle: Bundle, product_id: str) -> Review:
        copy = await self._call(
            "create syndicated copy",
            self.store.create_review(self._copy_fields(original, bundle, product_id))
        )
        try:
            await self._call("create syndication link", self.store.create_link({
                "original_review_id": original.id,
                "copy_review_id": copy.id,
                "bundle_id": bundle.id,
                "bundle_product_id": bundle.bundle_product_id,
                "product_id": product_id,
            }))
        except DuplicateLink:
            # A concurrent syndicate won the pair; keep its copy.
            await self._call("discard duplicate copy", self.store.delete_review(copy.id))
            logger.warning(
                f"Concurrent syndication detected for review {original.id} on product {product_id}",
                metadata={
                    "event": "syndication_duplicate_link",
                    "originalReviewId": original.id,
                    "productId": product_id,
                    "discardedCopyId": copy.id,
                }
            )
            link = await self._call("find winning link", self.store.find_link(original.id, product_id))
            if link is None:
                raise NotFound(
                    f"Syndication link for review {original.id} on product {product_id} vanished",
                    details={"original_review_id": original.id, "product_id": product_id}
                )
            return await self._refresh_copy(link, original, bundle)
        return copy

    async def _write_copy(self, original: Review, bundle: Bundle, product_id: str) -> Review:
        link = await self._call("find syndication link", self.store.find_link(original.id, product_id))
        if link is not None:
            try:
                return await self._refresh_copy(link, original, bundle)
            except NotFound:
                # The copy was deleted out from under its link; replace both.
                await self._call("drop stale link", self.store.delete_link(link.id))
        return await self._create_copy(original, bundle, product_id)

    async def syndicate(self, original_review_id: str, bundle_id: str) -> SweepResult:
        """
        Ensure exactly one approved copy of the original exists on every other
        member of the bundle. Re-running creates nothing new; existing copies
        are overwritten with the original's current content.

        A missing original or bundle is fatal. Failures on individual targets
        are recorded on the returned SweepResult and do not stop the loop.
        """
        original = await self._call("load original review", self.store.get_review(original_review_id))
        bundle = await self._call("load bundle", self.store.get_bundle(bundle_id))

        result = SweepResult()
        for product_id in bundle.targets_for(original.product_id):
            try:
                await self._write_copy(original, bundle, product_id)
                result.count += 1
            except SWEEP_ERRORS as e:
                result.record_failure(product_id, e)
                logger.error(
                    f"Failed to syndicate review {original.id} to product {product_id}",
                    error=e,
                    metadata={
                        "event": "syndication_target_failed",
                        "originalReviewId": original.id,
                        "productId": product_id,
                        "bundleId": bundle.id,
                    }
                )

        logger.info(
            f"Syndicated review {original.id} across bundle {bundle.name}",
            metadata={
                "event": "review_syndicated",
                "originalReviewId": original.id,
                "bundleId": bundle.id,
                "copies": result.count,
                "failures": len(result.failures),
            }
        )
        return result

    async def remove_for_product(self, original_review_id: str, product_id: str) -> int:
        """Delete the one copy of the original on the product; return 0 or 1"""
        link = await self._call("find syndication link", self.store.find_link(original_review_id, product_id))
        if link is None:
            return 0
        await self._call("delete syndicated copy", self.store.delete_review(link.copy_review_id))
        await self._call("delete syndication link", self.store.delete_link(link.id))
        logger.info(
            f"Removed syndicated copy of review {original_review_id} from product {product_id}",
            metadata={
                "event": "syndicated_copy_removed",
                "originalReviewId": original_review_id,
                "productId": product_id,
                "copyReviewId": link.copy_review_id,
            }
        )
        return 1

    async def remove_all(self, original_review_id: str) -> SweepResult:
        """Delete every copy and link derived from the original, best effort"""
        links = await self._call("list syndication links", self.store.list_links(original_review_id))
        result = SweepResult()
        for link in links:
            try:
                await self._call("delete syndicated copy", self.store.delete_review(link.copy_review_id))
                await self._call("delete syndication link", self.store.delete_link(link.id))
                result.count += 1
            except SWEEP_ERRORS as e:
                result.record_failure(link.copy_review_id, e)
                logger.error(
                    f"Failed to remove syndicated copy {link.copy_review_id}",
                    error=e,
                    metadata={
                        "event": "syndicated_copy_remove_failed",
                        "originalReviewId": original_review_id,
                        "copyReviewId": link.copy_review_id,
                    }
                )

        logger.info(
            f"Removed {result.count} syndicated copies of review {original_review_id}",
            metadata={
                "event": "syndicated_copies_removed",
                "originalReviewId": original_review_id,
                "removed": result.count,
                "failures": len(result.failures),
            }
        )
        return result

    async def propagate_fields(self, original_review_id: str, fields: Dict[str, Any]) -> SweepResult:
        """Overwrite the given fields on every existing copy, best effort"""
        links = await self._call("list syndication links", self.store.list_links(original_review_id))
        result = SweepResult()
        for link in links:
            try:
                await self._call("update syndicated copy", self.store.update_review(link.copy_review_id, fields))
                result.count += 1
            except SWEEP_ERRORS as e:
                result.record_failure(link.copy_review_id, e)
                logger.error(
                    f"Failed to update syndicated copy {link.copy_review_id}",
                    error=e,
                    metadata={
                        "event": "syndicated_copy_update_failed",
                        "originalReviewId": original_review_id,
                        "copyReviewId": link.copy_review_id,
                        "fields": sorted(fields),
                    }
                )
        return result

    async def propagate_status(self, original_review_id: str, status: ReviewStatus) -> SweepResult:
        """Set the status of every existing copy of the original"""
        result = await self.propagate_fields(original_review_id, {"status": status})
        logger.info(
            f"Propagated status {status.value} to copies of review {original_review_id}",
            metadata={
                "event": "syndicated_status_propagated",
                "originalReviewId": original_review_id,
                "status": status.value,
                "updated": result.count,
                "failures": len(result.failures),
            }
        )
        return result

    async def is_first_approval(self, original_review_id: str) -> bool:
        """True while no copy of the original has ever been created"""
        links = await self._call("list syndication links", self.store.list_links(original_review_id))
        return not links

    async def find_original(self, copy_review_id: str) -> Optional[str]:
        link = await self._call("find link by copy", self.store.find_link_by_copy(copy_review_id))
        return link.original_review_id if link else None
