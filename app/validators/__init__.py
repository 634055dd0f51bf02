"""
Validators module initialization
"""

from .review_validators import (
    ReviewValidatorMixin,
    ReviewSubmissionValidatorMixin,
    ReviewEditValidatorMixin,
    normalize_product_id,
    require_numeric_product_id,
)

__all__ = [
    "ReviewValidatorMixin",
    "ReviewSubmissionValidatorMixin",
    "ReviewEditValidatorMixin",
    "normalize_product_id",
    "require_numeric_product_id",
]
