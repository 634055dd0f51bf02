"""
Per-product review endpoints: the published listing and the rating aggregate
"""

from typing import List

from fastapi import APIRouter, Depends

from app.dependencies.review import get_aggregation_engine
from app.schemas.review import AggregateResponse, PublishedReview
from app.services.aggregation import AggregationEngine

router = APIRouter()


@router.get("/{product_id}/reviews", response_model=List[PublishedReview])
async def list_product_reviews(
    product_id: str,
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    """Approved reviews for a product, syndicated copies included, newest first"""
    return await engine.list_published_reviews(product_id)


@router.get("/{product_id}/aggregate", response_model=AggregateResponse)
async def get_product_aggregate(
    product_id: str,
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    aggregate = await engine.compute_aggregate(product_id)
    return AggregateResponse(aggregate=aggregate, rating=aggregate.display_rating)
