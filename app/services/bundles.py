"""
Bundle administration service
"""

from typing import List

from app.core.errors import NotFound
from app.core.logger import logger
from app.models.bundle import Bundle
from app.schemas.bundle import BundleCreate
from app.services.base import StoreBackedService


class BundleService(StoreBackedService):
    """Create, list and delete bundle configurations"""

    async def save_bundle(self, bundle_data: BundleCreate) -> Bundle:
        """Create a bundle, or redefine the bundle with the same name"""
        fields = bundle_data.model_dump()
        if not fields.get("bundle_product_id"):
            fields["bundle_product_id"] = bundle_data.product_ids[0]

        bundle = await self._call("save bundle", self.store.save_bundle(fields))
        logger.info(
            f"Saved bundle {bundle.name}",
            metadata={
                "event": "bundle_saved",
                "bundleId": bundle.id,
                "bundleProductId": bundle.bundle_product_id,
                "productCount": len(bundle.product_ids),
            }
        )
        return bundle

    async def list_bundles(self) -> List[Bundle]:
        return await self._call("list bundles", self.store.list_bundles())

    async def delete_bundle(self, bundle_id: str) -> None:
        """Remove the configuration only; copies and links already made stay"""
        deleted = await self._call("delete bundle", self.store.delete_bundle(bundle_id))
        if not deleted:
            raise NotFound("Bundle not found", details={"bundle_id": bundle_id})
        logger.info(
            f"Deleted bundle {bundle_id}",
            metadata={"event": "bundle_deleted", "bundleId": bundle_id}
        )
