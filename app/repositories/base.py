"""
Review Store interface
Defines the contract the syndication and aggregation engines need from
persistence. Implementations must enforce one syndication link per
(original review, target product) and raise DuplicateLink on a second create.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.models.bundle import Bundle, SyndicationLink
from app.models.review import Review, ReviewStatus


class ReviewFilter(BaseModel):
    """Filter for review listings and counts. Unset fields do not filter."""
    ids: Optional[List[str]] = None
    product_id: Optional[str] = None
    status: Optional[ReviewStatus] = None
    is_syndicated: Optional[bool] = None
    shop: Optional[str] = None


class ReviewStore(ABC):
    """Abstract base class for review persistence"""

    @abstractmethod
    async def get_review(self, review_id: str) -> Review:
        """Return the review or raise NotFound"""

    @abstractmethod
    async def create_review(self, fields: Dict[str, Any]) -> Review:
        """Insert a review; id, shop and timestamps are assigned by the store"""

    @abstractmethod
    async def update_review(self, review_id: str, fields: Dict[str, Any]) -> Review:
        """Apply a partial update and return the stored review, or raise NotFound"""

    @abstractmethod
    async def delete_review(self, review_id: str) -> None:
        """Delete a review; absent reviews are a no-op"""

    @abstractmethod
    async def list_reviews(self, review_filter: ReviewFilter) -> List[Review]:
        """List reviews matching the filter, newest first"""

    @abstractmethod
    async def count_reviews(self, review_filter: ReviewFilter) -> int:
        """Count reviews matching the filter"""

    @abstractmethod
    async def get_bundle(self, bundle_id: str) -> Bundle:
        """Return the bundle or raise NotFound"""

    @abstractmethod
    async def get_bundle_by_product(self, product_id: str) -> Optional[Bundle]:
        """Return the bundle the product is a member of, if any"""

    @abstractmethod
    async def list_bundles(self) -> List[Bundle]:
        """List all bundles"""

    @abstractmethod
    async def save_bundle(self, fields: Dict[str, Any]) -> Bundle:
        """Create a bundle, or update the bundle with the same name"""

    @abstractmethod
    async def delete_bundle(self, bundle_id: str) -> bool:
        """Delete a bundle configuration; return whether it existed"""

    @abstractmethod
    async def find_link(self, original_review_id: str, product_id: str) -> Optional[SyndicationLink]:
        """Return the link for an (original, target product) pair, if any"""

    @abstractmethod
    async def list_links(self, original_review_id: str) -> List[SyndicationLink]:
        """All links created from one original review"""

    @abstractmethod
    async def list_links_by_product(self, product_id: str) -> List[SyndicationLink]:
        """All links whose copy lives on the given product"""

    @abstractmethod
    async def find_link_by_copy(self, copy_review_id: str) -> Optional[SyndicationLink]:
        """Reverse lookup from a syndicated copy to its link"""

    @abstractmethod
    async def create_link(self, fields: Dict[str, Any]) -> SyndicationLink:
        """Insert a link or raise DuplicateLink"""

    @abstractmethod
    async def delete_link(self, link_id: str) -> None:
        """Delete a link; absent links are a no-op"""
