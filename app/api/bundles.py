"""
Bundle administration endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from app.core.errors import ErrorResponseModel
from app.dependencies.review import get_bundle_service
from app.models.bundle import Bundle
from app.schemas.bundle import BundleCreate
from app.services.bundles import BundleService

router = APIRouter()


@router.post(
    "",
    response_model=Bundle,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponseModel}},
)
async def save_bundle(
    bundle: BundleCreate,
    service: BundleService = Depends(get_bundle_service),
):
    """Create a bundle, or redefine the bundle with the same name"""
    return await service.save_bundle(bundle)


@router.get("", response_model=List[Bundle])
async def list_bundles(
    service: BundleService = Depends(get_bundle_service),
):
    return await service.list_bundles()


@router.delete(
    "/{bundle_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponseModel}},
)
async def delete_bundle(
    bundle_id: str,
    service: BundleService = Depends(get_bundle_service),
):
    """Delete a bundle configuration. Syndicated copies already made remain."""
    await service.delete_bundle(bundle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
