"""
Bundle and syndication link models
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.review import utc_now
from app.validators.review_validators import normalize_product_id


class Bundle(BaseModel):
    """A named group of products sharing one review pool"""
    id: str
    shop: str
    name: str
    bundle_product_id: str
    product_ids: List[str]
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('bundle_product_id', mode='before')
    @classmethod
    def primary_bare(cls, v):
        return normalize_product_id(v)

    @field_validator('product_ids', mode='before')
    @classmethod
    def members_bare(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        members = []
        for product_id in v or []:
            product_id = normalize_product_id(product_id)
            if product_id not in members:
                members.append(product_id)
        return members

    @model_validator(mode='after')
    def membership_valid(self):
        if len(self.product_ids) < 2:
            raise ValueError('A bundle must include at least 2 distinct products')
        if self.bundle_product_id not in self.product_ids:
            raise ValueError('The primary product must be a member of the bundle')
        return self

    def targets_for(self, product_id: str) -> List[str]:
        """Members other than the given product, in bundle order"""
        return [member for member in self.product_ids if member != product_id]


class SyndicationLink(BaseModel):
    """Provenance edge between an original review and one syndicated copy"""
    id: str
    shop: str
    original_review_id: str
    copy_review_id: str
    bundle_id: str
    bundle_product_id: str
    product_id: str
    created_at: datetime = Field(default_factory=utc_now)
