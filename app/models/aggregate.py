"""
Derived rating aggregates and the result types returned by fan-out work
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, Field


class RatingSource(str, Enum):
    DIRECT = "direct"
    SYNDICATED = "syndicated"


class AggregateKey(NamedTuple):
    """
    Deduplication key for one rating entry.

    Direct entries use (DIRECT, "", review_id); syndicated entries use
    (SYNDICATED, bundle_product_id, original_review_id). The tag keeps the
    two key spaces apart.
    """
    source: RatingSource
    scope_id: str
    review_id: str


class Aggregate(BaseModel):
    """Deduplicated rating summary for one product"""
    product_id: str
    count: int = Field(default=0, ge=0)
    mean: Decimal = Decimal(0)

    @property
    def display_rating(self) -> str:
        """Mean with one decimal place, e.g. '4.0'"""
        return str(self.mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class SweepFailure(BaseModel):
    item_id: str
    error_type: str
    message: str


class SweepResult(BaseModel):
    """Outcome of a best-effort loop: how many items succeeded and which failed"""
    count: int = 0
    failures: List[SweepFailure] = Field(default_factory=list)

    def record_failure(self, item_id: str, error: Exception):
        self.failures.append(
            SweepFailure(item_id=item_id, error_type=type(error).__name__, message=str(error))
        )

    @property
    def complete(self) -> bool:
        return not self.failures


class PublishResult(BaseModel):
    product_id: str
    rating: str
    count: int


class ProductRefresh(BaseModel):
    """Re-aggregation outcome for one affected product"""
    product_id: str
    aggregate: Optional[Aggregate] = None
    published: bool = False
    error_type: Optional[str] = None
    error: Optional[str] = None
