"""
Review model: one customer opinion about one product, either submitted
directly or materialized on a bundle sibling as a syndicated copy.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.validators.review_validators import normalize_product_id


def utc_now():
    """Helper function for Pydantic default_factory to get current UTC time"""
    return datetime.now(timezone.utc)


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Scope(str, Enum):
    """Breadth of a lifecycle action"""
    INDIVIDUAL = "individual"  # this product's review instance only
    BUNDLE = "bundle"          # the original and all of its syndicated copies


class ReviewImage(BaseModel):
    id: str
    url: str
    alt_text: Optional[str] = None
    order: int = 0


class Review(BaseModel):
    """Stored review record"""
    id: str
    shop: str
    product_id: str
    rating: int = Field(..., ge=1, le=5)
    author: str
    email: Optional[str] = None
    title: Optional[str] = None
    content: str
    images: List[ReviewImage] = Field(default_factory=list)
    status: ReviewStatus = ReviewStatus.PENDING
    is_syndicated: bool = False
    bundle_context: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('product_id', mode='before')
    @classmethod
    def product_id_bare(cls, v):
        return normalize_product_id(v)

    def content_fields(self) -> dict:
        """Fields a syndicated copy mirrors from its original"""
        return {
            "rating": self.rating,
            "author": self.author,
            "email": self.email,
            "title": self.title,
            "content": self.content,
            "images": [image.model_dump() for image in self.images],
        }
