"""
Review lifecycle API endpoints
Submission, moderation (status, edit, delete) and the shop-wide summary.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query, status

from app.core.errors import ErrorResponseModel, InvalidInput
from app.dependencies.review import get_aggregation_engine, get_lifecycle_service
from app.models.review import Scope
from app.schemas.review import LifecycleResponse, ShopSummary, StatusChange, SubmitResponse
from app.services.aggregation import AggregationEngine
from app.services.lifecycle import ReviewLifecycleService

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponseModel},
    404: {"model": ErrorResponseModel},
    503: {"model": ErrorResponseModel},
}


@router.post(
    "",
    response_model=SubmitResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponseModel}, 503: {"model": ErrorResponseModel}},
)
async def submit_review(
    payload: Dict[str, Any] = Body(...),
    service: ReviewLifecycleService = Depends(get_lifecycle_service),
):
    """
    Submit a storefront review. The review starts as pending; the product's
    aggregate is republished best-effort.
    """
    review, _ = await service.submit_review(payload)
    return SubmitResponse(review=review)


@router.get("", response_model=ShopSummary)
async def shop_summary(
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    """Approved original reviews of the shop with their average rating"""
    return await engine.summarize_shop()


@router.patch("/{review_id}/status", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def change_status(
    review_id: str,
    change: StatusChange,
    service: ReviewLifecycleService = Depends(get_lifecycle_service),
):
    return await service.change_status(review_id, change.status, change.scope)


@router.put("/{review_id}", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def edit_review(
    review_id: str,
    payload: Dict[str, Any] = Body(...),
    scope: Scope = Query(...),
    service: ReviewLifecycleService = Depends(get_lifecycle_service),
):
    """
    Edit a review. `images_to_remove` in the body lists image ids to drop;
    the remaining fields follow the moderator edit rules.
    """
    fields = dict(payload)
    images_to_remove = fields.pop("images_to_remove", None) or []
    if not isinstance(images_to_remove, list):
        raise InvalidInput(
            "images_to_remove must be a list of image ids",
            details={"images_to_remove": "Expected a list"}
        )
    return await service.edit_review(review_id, fields, [str(i) for i in images_to_remove], scope)


@router.delete("/{review_id}", response_model=LifecycleResponse, responses=ERROR_RESPONSES)
async def delete_review(
    review_id: str,
    scope: Scope = Query(...),
    service: ReviewLifecycleService = Depends(get_lifecycle_service),
):
    return await service.delete_review(review_id, scope)
