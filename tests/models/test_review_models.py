"""Tests for review, bundle and aggregate models"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.models.aggregate import Aggregate, AggregateKey, RatingSource, SweepResult
from app.models.bundle import Bundle
from app.models.review import Review


class TestBundle:

    def test_members_normalized_and_deduplicated(self):
        bundle = Bundle(
            id="b1", shop="s", name="Kit",
            bundle_product_id="gid://shopify/Product/1",
            product_ids="1, 2,gid://shopify/Product/2",
        )
        assert bundle.product_ids == ["1", "2"]
        assert bundle.bundle_product_id == "1"

    def test_requires_two_members(self):
        with pytest.raises(ValidationError, match="at least 2 distinct products"):
            Bundle(id="b1", shop="s", name="Kit", bundle_product_id="1", product_ids=["1"])

    def test_primary_must_be_member(self):
        with pytest.raises(ValidationError, match="primary product"):
            Bundle(id="b1", shop="s", name="Kit", bundle_product_id="9", product_ids=["1", "2"])

    def test_targets_exclude_owner(self):
        bundle = Bundle(id="b1", shop="s", name="Kit", bundle_product_id="1", product_ids=["1", "2", "3"])
        assert bundle.targets_for("2") == ["1", "3"]


class TestAggregate:

    @pytest.mark.parametrize("mean,expected", [
        (Decimal(4), "4.0"),
        (Decimal("4.25"), "4.3"),
        (Decimal(14) / Decimal(3), "4.7"),
        (Decimal(0), "0.0"),
    ])
    def test_display_rating(self, mean, expected):
        assert Aggregate(product_id="1", count=1, mean=mean).display_rating == expected

    def test_key_spaces_never_collide(self):
        direct = AggregateKey(RatingSource.DIRECT, "", "r1")
        syndicated = AggregateKey(RatingSource.SYNDICATED, "", "r1")
        assert direct != syndicated


class TestSweepResult:

    def test_record_failure(self):
        result = SweepResult(count=1)
        result.record_failure("r2", KeyError("gone"))

        assert result.complete is False
        assert result.failures[0].item_id == "r2"
        assert result.failures[0].error_type == "KeyError"


class TestReview:

    def test_rating_bounds(self):
        with pytest.raises(ValidationError):
            Review(id="r1", shop="s", product_id="1", rating=6, author="A", content="C")

    def test_content_fields_exclude_identity(self):
        review = Review(id="r1", shop="s", product_id="1", rating=4, author="A", content="C")
        fields = review.content_fields()
        assert set(fields) == {"rating", "author", "email", "title", "content", "images"}
