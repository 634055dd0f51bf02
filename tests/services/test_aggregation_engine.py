"""Unit tests for the aggregation engine"""
import asyncio
from decimal import Decimal

import pytest

from app.core.errors import StoreUnavailable
from app.models.bundle import SyndicationLink
from app.models.review import ReviewStatus
from app.services.aggregation import AggregationEngine
from app.services.syndication import SyndicationEngine


@pytest.fixture
def engine(store):
    return AggregationEngine(store, timeout=1)


@pytest.fixture
def syndication(store):
    return SyndicationEngine(store, timeout=1)


class TestComputeAggregate:
    """Test deduplicated aggregate computation"""

    @pytest.mark.asyncio
    async def test_empty_product(self, engine):
        aggregate = await engine.compute_aggregate("101")
        assert aggregate.count == 0
        assert aggregate.mean == Decimal(0)
        assert aggregate.display_rating == "0.0"

    @pytest.mark.asyncio
    async def test_only_approved_direct_reviews_count(self, engine, add_review):
        await add_review("101", rating=5, status="approved")
        await add_review("101", rating=4, status="approved")
        await add_review("101", rating=1, status="pending")
        await add_review("101", rating=1, status="rejected")

        aggregate = await engine.compute_aggregate("101")

        assert aggregate.count == 2
        assert aggregate.mean == Decimal("4.5")
        assert aggregate.display_rating == "4.5"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ratings,count,mean,display", [
        ((3, 4, 5), 3, Decimal(4), "4.0"),
        ((5, 4), 2, Decimal("4.5"), "4.5"),
        ((5, 5, 4), 3, Decimal(14) / Decimal(3), "4.7"),
    ])
    async def test_mean_of_approved_ratings(self, engine, add_review, ratings, count, mean, display):
        for rating in ratings:
            await add_review("101", rating=rating, status="approved")

        aggregate = await engine.compute_aggregate("101")

        assert aggregate.count == count
        assert aggregate.mean == mean
        assert aggregate.display_rating == display

    @pytest.mark.asyncio
    async def test_whole_number_mean_keeps_one_decimal(self, engine, add_review):
        await add_review("101", rating=4, status="approved")
        aggregate = await engine.compute_aggregate("101")
        assert aggregate.display_rating == "4.0"

    @pytest.mark.asyncio
    async def test_compound_product_id_is_normalized(self, engine, add_review):
        await add_review("101", rating=3, status="approved")
        aggregate = await engine.compute_aggregate("gid://shopify/Product/101")
        assert aggregate.product_id == "101"
        assert aggregate.count == 1

    @pytest.mark.asyncio
    async def test_syndicated_copy_counts_on_sibling(self, engine, syndication, add_review, add_bundle):
        bundle = await add_bundle()
        original = await add_review("101", rating=5, status="approved")
        await add_review("102", rating=3, status="approved")
        await syndication.syndicate(original.id, bundle.id)

        sibling = await engine.compute_aggregate("102")
        own = await engine.compute_aggregate("101")

        assert sibling.count == 2
        assert sibling.mean == Decimal(4)
        assert own.count == 1

    @pytest.mark.asyncio
    async def test_copy_never_counts_as_direct_review(self, engine, store, add_review):
        # A copy with no link behind it is not attributable to anything
        await add_review("102", rating=1, status="approved", is_syndicated=True)
        aggregate = await engine.compute_aggregate("102")
        assert aggregate.count == 0

    @pytest.mark.asyncio
    async def test_unapproved_copy_is_excluded(self, engine, syndication, store, add_review, add_bundle):
        bundle = await add_bundle()
        original = await add_review("101", rating=5, status="approved")
        await syndication.syndicate(original.id, bundle.id)
        await syndication.propagate_status(original.id, ReviewStatus.REJECTED)

        aggregate = await engine.compute_aggregate("102")
        assert aggregate.count == 0

    @pytest.mark.asyncio
    async def test_same_original_counted_once_per_product(self, engine, syndication, store, add_review, add_bundle):
        bundle = await add_bundle()
        original = await add_review("101", rating=5, status="approved")
        await syndication.syndicate(original.id, bundle.id)

        # Simulate a duplicated link row pointing at a second approved copy
        stray = await add_review("102", rating=5, status="approved", is_syndicated=True)
        copies = store.copies_of(original.id)
        store.links["stray"] = SyndicationLink(
            id="stray",
            shop=store.shop,
            original_review_id=original.id,
            copy_review_id=stray.id,
            bundle_id=bundle.id,
            bundle_product_id=bundle.bundle_product_id,
            product_id="102",
        )

        aggregate = await engine.compute_aggregate("102")
        assert "102" in copies
        assert aggregate.count == 1

    @pytest.mark.asyncio
    async def test_dangling_link_is_skipped(self, engine, syndication, store, add_review, add_bundle):
        bundle = await add_bundle()
        original = await add_review("101", rating=5, status="approved")
        await syndication.syndicate(original.id, bundle.id)
        copy = store.copies_of(original.id)["102"]
        del store.reviews[copy.id]

        aggregate = await engine.compute_aggregate("102")
        assert aggregate.count == 0

    @pytest.mark.asyncio
    async def test_store_timeout_raises_store_unavailable(self, store, add_review):
        async def slow_list(review_filter):
            await asyncio.sleep(1)
            return []

        store.list_reviews = slow_list
        engine = AggregationEngine(store, timeout=0.01)

        with pytest.raises(StoreUnavailable):
            await engine.compute_aggregate("101")

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, engine, store):
        store.failures[("list_links_by_product", None)] = StoreUnavailable("down")
        with pytest.raises(StoreUnavailable):
            await engine.compute_aggregate("101")


class TestPublishedReviews:
    """Test the product page listing"""

    @pytest.mark.asyncio
    async def test_lists_direct_and_syndicated_newest_first(self, engine, syndication, add_review, add_bundle):
        bundle = await add_bundle()
        direct = await add_review("102", rating=4, status="approved")
        original = await add_review("101", rating=5, status="approved")
        await syndication.syndicate(original.id, bundle.id)

        reviews = await engine.list_published_reviews("102")

        assert len(reviews) == 2
        assert reviews[0].is_syndicated is True
        assert reviews[0].bundle_context == f"Syndicated from Starter Kit (Original: {original.id})"
        assert reviews[0].product_id == "102"
        assert reviews[1].id == direct.id
        assert reviews[1].is_syndicated is False

    @pytest.mark.asyncio
    async def test_pending_reviews_are_hidden(self, engine, add_review):
        await add_review("101", status="pending")
        assert await engine.list_published_reviews("101") == []


class TestShopSummary:
    """Test the shop-wide summary"""

    @pytest.mark.asyncio
    async def test_summary_excludes_copies_and_sorts_by_rating(self, engine, syndication, add_review, add_bundle):
        bundle = await add_bundle()
        low = await add_review("104", rating=2, status="approved")
        original = await add_review("101", rating=5, status="approved")
        await add_review("104", rating=5, status="pending")
        await syndication.syndicate(original.id, bundle.id)

        summary = await engine.summarize_shop()

        assert summary.total_reviews == 2
        assert [r.id for r in summary.reviews] == [original.id, low.id]
        assert summary.average_rating == "3.5"

    @pytest.mark.asyncio
    async def test_empty_shop(self, engine):
        summary = await engine.summarize_shop()
        assert summary.total_reviews == 0
        assert summary.average_rating == "0.0"
