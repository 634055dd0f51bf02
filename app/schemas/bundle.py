"""
API schemas for bundle administration
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class BundleCreate(BaseModel):
    """Create or update a bundle by name. The primary product defaults to the first member."""
    name: str = Field(..., min_length=1, max_length=255)
    product_ids: List[str] = Field(..., min_length=2)
    bundle_product_id: Optional[str] = None
