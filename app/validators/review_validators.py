import re

from pydantic import field_validator

from app.core.config import config

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_product_id(value) -> str:
    """Reduce a compound product identifier to its bare trailing segment"""
    if value is None:
        raise ValueError('Product ID is required')
    value = str(value).strip().split("/")[-1].strip()
    if not value:
        raise ValueError('Product ID is required')
    return value


def require_numeric_product_id(value) -> str:
    value = normalize_product_id(value)
    if not value.isdigit():
        raise ValueError('Invalid Product ID format. Must be a numeric string or Shopify GID.')
    return value


def _required_text(value, label):
    if value is None or not str(value).strip():
        raise ValueError(f'{label} is required')
    return value.strip()


class ReviewValidatorMixin:
    """Field rules shared by review submission and edit payloads"""

    @field_validator('rating', mode='before', check_fields=False)
    @classmethod
    def rating_not_boolean(cls, v):
        if isinstance(v, bool):
            raise ValueError('Rating must be a number between 1 and 5')
        return v

    @field_validator('rating', check_fields=False)
    @classmethod
    def rating_valid(cls, v):
        if v is None or v < 1 or v > 5:
            raise ValueError('Rating must be a number between 1 and 5')
        return v

    @field_validator('author', check_fields=False)
    @classmethod
    def author_required(cls, v):
        return _required_text(v, 'Author')

    @field_validator('content', check_fields=False)
    @classmethod
    def content_valid(cls, v):
        v = _required_text(v, 'Content')
        max_words = config.review_max_word_count
        if len(v.split()) > max_words:
            raise ValueError(f'Review content must be {max_words} words or less')
        return v

    @field_validator('email', check_fields=False)
    @classmethod
    def email_format(cls, v):
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email format')
        return v


class ReviewSubmissionValidatorMixin(ReviewValidatorMixin):
    """Storefront submissions additionally need a numeric product and an email"""

    @field_validator('product_id', check_fields=False)
    @classmethod
    def product_id_numeric(cls, v):
        return require_numeric_product_id(v)

    @field_validator('email', check_fields=False)
    @classmethod
    def email_format(cls, v):
        if v is None or not v.strip():
            raise ValueError('Email is required')
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email format')
        return v


class ReviewEditValidatorMixin(ReviewValidatorMixin):
    """Moderator edits require a title on top of the shared rules"""

    @field_validator('title', check_fields=False)
    @classmethod
    def title_required(cls, v):
        return _required_text(v, 'Title')
