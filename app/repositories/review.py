"""
MongoDB implementation of the Review Store, scoped to one shop
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING, IndexModel, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.errors import DuplicateLink, InvalidInput, NotFound, StoreUnavailable, validation_details
from app.core.logger import logger
from app.models.bundle import Bundle, SyndicationLink
from app.models.review import Review
from app.repositories.base import ReviewFilter, ReviewStore
from app.validators.review_validators import normalize_product_id

REVIEWS_COLLECTION = "reviews"
BUNDLES_COLLECTION = "review_bundles"
LINKS_COLLECTION = "review_syndications"


def _to_object_id(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if ObjectId.is_valid(value) else None


def _to_document(fields: Dict[str, Any]) -> Dict[str, Any]:
    doc = {}
    for key, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        doc[key] = value
    return doc


def _with_image_ids(images: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    prepared = []
    for position, image in enumerate(images or []):
        image = dict(image)
        image.setdefault("id", str(ObjectId()))
        image.setdefault("order", position)
        prepared.append(image)
    return prepared


class MongoReviewStore(ReviewStore):
    """Repository for reviews, bundles and syndication links of one shop"""

    def __init__(self, database: AsyncIOMotorDatabase, shop: str):
        self.shop = shop
        self.reviews = database[REVIEWS_COLLECTION]
        self.bundles = database[BUNDLES_COLLECTION]
        self.links = database[LINKS_COLLECTION]

    @contextmanager
    def _guard(self, operation: str):
        """Translate driver failures into StoreUnavailable"""
        try:
            yield
        except PyMongoError as e:
            logger.error(
                f"MongoDB error during {operation}: {e}",
                error=e,
                metadata={"event": "store_error", "operation": operation, "shop": self.shop}
            )
            raise StoreUnavailable(
                f"Database error during {operation}",
                details={"operation": operation}
            )

    async def ensure_indexes(self):
        """Create indexes, including the link uniqueness constraint"""
        with self._guard("ensure_indexes"):
            await self.links.create_indexes([
                IndexModel(
                    [("shop", ASCENDING), ("original_review_id", ASCENDING), ("product_id", ASCENDING)],
                    unique=True,
                    name="original_target_unique",
                ),
                IndexModel([("shop", ASCENDING), ("product_id", ASCENDING)], name="target_product_idx"),
                IndexModel([("shop", ASCENDING), ("copy_review_id", ASCENDING)], name="copy_review_idx"),
            ])
            await self.reviews.create_indexes([
                IndexModel(
                    [("shop", ASCENDING), ("product_id", ASCENDING),
                     ("status", ASCENDING), ("is_syndicated", ASCENDING)],
                    name="product_status_idx",
                ),
                IndexModel([("shop", ASCENDING), ("created_at", DESCENDING)], name="shop_created_idx"),
            ])
            await self.bundles.create_indexes([
                IndexModel([("shop", ASCENDING), ("name", ASCENDING)], unique=True, name="bundle_name_unique"),
                IndexModel([("shop", ASCENDING), ("product_ids", ASCENDING)], name="bundle_members_idx"),
            ])
        logger.info("Review store indexes created", metadata={"event": "store_indexes_created"})

    # Reviews

    def _doc_to_review(self, doc: dict) -> Review:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return Review(**doc)

    def _review_query(self, review_filter: ReviewFilter) -> Dict[str, Any]:
        query: Dict[str, Any] = {"shop": review_filter.shop or self.shop}
        if review_filter.ids is not None:
            query["_id"] = {"$in": [oid for oid in map(_to_object_id, review_filter.ids) if oid]}
        if review_filter.product_id is not None:
            query["product_id"] = normalize_product_id(review_filter.product_id)
        if review_filter.status is not None:
            query["status"] = review_filter.status.value
        if review_filter.is_syndicated is not None:
            query["is_syndicated"] = review_filter.is_syndicated
        return query

    async def get_review(self, review_id: str) -> Review:
        oid = _to_object_id(review_id)
        doc = None
        if oid:
            with self._guard("review retrieval"):
                doc = await self.reviews.find_one({"_id": oid, "shop": self.shop})
        if not doc:
            raise NotFound("Review not found", details={"review_id": review_id})
        return self._doc_to_review(doc)

    async def create_review(self, fields: Dict[str, Any]) -> Review:
        now = datetime.now(timezone.utc)
        doc = _to_document(fields)
        doc.pop("id", None)
        doc["product_id"] = normalize_product_id(doc.get("product_id"))
        doc["images"] = _with_image_ids(doc.get("images", []))
        doc.update({"shop": self.shop, "created_at": now, "updated_at": now})
        with self._guard("review creation"):
            result = await self.reviews.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._doc_to_review(doc)

    async def update_review(self, review_id: str, fields: Dict[str, Any]) -> Review:
        oid = _to_object_id(review_id)
        if not oid:
            raise NotFound("Review not found", details={"review_id": review_id})
        update = _to_document(fields)
        update.pop("id", None)
        if "images" in update:
            update["images"] = _with_image_ids(update["images"])
        update["updated_at"] = datetime.now(timezone.utc)
        with self._guard("review update"):
            doc = await self.reviews.find_one_and_update(
                {"_id": oid, "shop": self.shop},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise NotFound("Review not found", details={"review_id": review_id})
        return self._doc_to_review(doc)

    async def delete_review(self, review_id: str) -> None:
        oid = _to_object_id(review_id)
        if not oid:
            return
        with self._guard("review deletion"):
            await self.reviews.delete_one({"_id": oid, "shop": self.shop})

    async def list_reviews(self, review_filter: ReviewFilter) -> List[Review]:
        with self._guard("review listing"):
            cursor = self.reviews.find(self._review_query(review_filter)).sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)
        return [self._doc_to_review(doc) for doc in docs]

    async def count_reviews(self, review_filter: ReviewFilter) -> int:
        with self._guard("review count"):
            return await self.reviews.count_documents(self._review_query(review_filter))

    # Bundles

    def _doc_to_bundle(self, doc: dict) -> Bundle:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return Bundle(**doc)

    async def get_bundle(self, bundle_id: str) -> Bundle:
        oid = _to_object_id(bundle_id)
        doc = None
        if oid:
            with self._guard("bundle retrieval"):
                doc = await self.bundles.find_one({"_id": oid, "shop": self.shop})
        if not doc:
            raise NotFound("Bundle not found", details={"bundle_id": bundle_id})
        return self._doc_to_bundle(doc)

    async def get_bundle_by_product(self, product_id: str) -> Optional[Bundle]:
        with self._guard("bundle lookup"):
            doc = await self.bundles.find_one(
                {"shop": self.shop, "product_ids": normalize_product_id(product_id)}
            )
        return self._doc_to_bundle(doc) if doc else None

    async def list_bundles(self) -> List[Bundle]:
        with self._guard("bundle listing"):
            docs = await self.bundles.find({"shop": self.shop}).sort("name", ASCENDING).to_list(length=None)
        return [self._doc_to_bundle(doc) for doc in docs]

    async def save_bundle(self, fields: Dict[str, Any]) -> Bundle:
        try:
            candidate = Bundle(id="new", shop=self.shop, **fields)
        except ValidationError as e:
            raise InvalidInput("Invalid bundle definition", details=validation_details(e))

        now = datetime.now(timezone.utc)
        with self._guard("bundle save"):
            conflict = await self.bundles.find_one({
                "shop": self.shop,
                "name": {"$ne": candidate.name},
                "product_ids": {"$in": candidate.product_ids},
            })
            if conflict:
                raise InvalidInput(
                    "A selected product already belongs to another bundle",
                    details={"bundle": conflict.get("name")}
                )
            try:
                doc = await self.bundles.find_one_and_update(
                    {"shop": self.shop, "name": candidate.name},
                    {
                        "$set": {
                            "bundle_product_id": candidate.bundle_product_id,
                            "product_ids": candidate.product_ids,
                            "updated_at": now,
                        },
                        "$setOnInsert": {"created_at": now},
                    },
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                raise InvalidInput("Bundle name already in use", details={"name": candidate.name})
        return self._doc_to_bundle(doc)

    async def delete_bundle(self, bundle_id: str) -> bool:
        oid = _to_object_id(bundle_id)
        if not oid:
            return False
        with self._guard("bundle deletion"):
            result = await self.bundles.delete_one({"_id": oid, "shop": self.shop})
        return result.deleted_count > 0

    # Syndication links

    def _doc_to_link(self, doc: dict) -> SyndicationLink:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return SyndicationLink(**doc)

    async def find_link(self, original_review_id: str, product_id: str) -> Optional[SyndicationLink]:
        with self._guard("link lookup"):
            doc = await self.links.find_one({
                "shop": self.shop,
                "original_review_id": original_review_id,
                "product_id": normalize_product_id(product_id),
            })
        return self._doc_to_link(doc) if doc else None

    async def list_links(self, original_review_id: str) -> List[SyndicationLink]:
        with self._guard("link listing"):
            docs = await self.links.find(
                {"shop": self.shop, "original_review_id": original_review_id}
            ).to_list(length=None)
        return [self._doc_to_link(doc) for doc in docs]

    async def list_links_by_product(self, product_id: str) -> List[SyndicationLink]:
        with self._guard("link listing"):
            docs = await self.links.find(
                {"shop": self.shop, "product_id": normalize_product_id(product_id)}
            ).to_list(length=None)
        return [self._doc_to_link(doc) for doc in docs]

    async def find_link_by_copy(self, copy_review_id: str) -> Optional[SyndicationLink]:
        with self._guard("link lookup"):
            doc = await self.links.find_one({"shop": self.shop, "copy_review_id": copy_review_id})
        return self._doc_to_link(doc) if doc else None

    async def create_link(self, fields: Dict[str, Any]) -> SyndicationLink:
        doc = _to_document(fields)
        doc.pop("id", None)
        doc["product_id"] = normalize_product_id(doc.get("product_id"))
        doc.update({"shop": self.shop, "created_at": datetime.now(timezone.utc)})
        with self._guard("link creation"):
            try:
                result = await self.links.insert_one(doc)
            except DuplicateKeyError:
                raise DuplicateLink(doc["original_review_id"], doc["product_id"])
        doc["_id"] = result.inserted_id
        return self._doc_to_link(doc)

    async def delete_link(self, link_id: str) -> None:
        oid = _to_object_id(link_id)
        if not oid:
            return
        with self._guard("link deletion"):
            await self.links.delete_one({"_id": oid, "shop": self.shop})
