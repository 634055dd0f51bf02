"""
API schemas for review lifecycle endpoints
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from app.models.aggregate import Aggregate, ProductRefresh, SweepResult
from app.models.review import Review, ReviewStatus, Scope
from app.validators.review_validators import (
    ReviewEditValidatorMixin,
    ReviewSubmissionValidatorMixin,
)


class ImageInput(BaseModel):
    url: str = Field(..., min_length=1)
    alt_text: Optional[str] = None


class ReviewCreate(ReviewSubmissionValidatorMixin, BaseModel):
    """Schema for a storefront review submission"""
    product_id: str
    rating: int
    author: str
    email: str
    title: Optional[str] = None
    content: str
    images: List[Union[ImageInput, str]] = []


class ReviewEdit(ReviewEditValidatorMixin, BaseModel):
    """Fields a moderator may change; status is kept when omitted"""
    title: str
    content: str
    rating: int
    author: str
    email: Optional[str] = None
    status: Optional[ReviewStatus] = None


class StatusChange(BaseModel):
    status: ReviewStatus
    scope: Scope


class LifecycleResponse(BaseModel):
    """Result of a status change, edit or delete"""
    success: bool = True
    message: str
    review: Optional[Review] = None
    affected_products: List[str] = []
    refreshed: List[ProductRefresh] = []
    syndication: Optional[SweepResult] = None


class SubmitResponse(BaseModel):
    success: bool = True
    message: str = "Review submitted successfully"
    review: Review


class PublishedReview(BaseModel):
    """A review as shown on a product page"""
    id: str
    product_id: str
    rating: int
    author: str
    title: Optional[str] = None
    content: str
    images: list = []
    is_syndicated: bool = False
    bundle_context: Optional[str] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_review(cls, review: Review, product_id: str) -> "PublishedReview":
        return cls(
            id=review.id,
            product_id=product_id,
            rating=review.rating,
            author=review.author,
            title=review.title,
            content=review.content,
            images=[image.model_dump() for image in sorted(review.images, key=lambda i: i.order)],
            is_syndicated=review.is_syndicated,
            bundle_context=review.bundle_context,
            created_at=review.created_at.isoformat(),
            updated_at=review.updated_at.isoformat(),
        )


class ShopSummary(BaseModel):
    reviews: List[Review]
    average_rating: str
    total_reviews: int


class AggregateResponse(BaseModel):
    aggregate: Aggregate
    rating: str
