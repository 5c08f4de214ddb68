from __future__ import annotations

import re
from typing import Optional

from fastapi import APIRouter, Depends, Query

from photogram.auth.deps import Identity, get_identity, get_optional_identity
from photogram.core.envelope import respond
from photogram.core.errors import InvalidInput
from photogram.core.settings import Settings
from photogram.dependencies import get_photo_service, get_settings
from photogram.models import Pagination
from photogram.services.photos import PhotoService

router = APIRouter(prefix="/photos", tags=["photos"])

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_int(value: Optional[str], default: int) -> int:
    """Leading integer of ``value`` ("1.5" -> 1); ``default`` when there is none."""
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else default


def get_pagination(
    page: Optional[str] = Query(default=None),
    page_size: Optional[str] = Query(default=None, alias="pageSize"),
    settings: Settings = Depends(get_settings),
) -> Pagination:
    page_msg = "Page must be greater than 0"
    size_msg = f"Page size must be between 1 and {settings.max_page_size}"
    parsed_page = _parse_int(page, 1)
    parsed_size = _parse_int(page_size, settings.default_page_size)
    if parsed_page < 1:
        raise InvalidInput(page_msg)
    if parsed_size < 1 or parsed_size > settings.max_page_size:
        raise InvalidInput(size_msg)
    return Pagination(page=parsed_page, page_size=parsed_size)


@router.get("/public")
async def get_public_photos(
    pagination: Pagination = Depends(get_pagination),
    identity: Optional[Identity] = Depends(get_optional_identity),
    photos: PhotoService = Depends(get_photo_service),
):
    viewer = identity.uid if identity else None
    categories = await photos.get_categories_with_pagination(viewer, pagination)
    return respond("Categories retrieved successfully", categories)


@router.get("/categories")
async def get_categories(
    identity: Identity = Depends(get_identity),
    pagination: Pagination = Depends(get_pagination),
    photos: PhotoService = Depends(get_photo_service),
):
    categories = await photos.get_categories_with_pagination(identity.uid, pagination)
    return respond("Categories retrieved successfully", categories)


@router.post("/{photo_id}/view")
async def view_photo(
    photo_id: str,
    identity: Identity = Depends(get_identity),
    photos: PhotoService = Depends(get_photo_service),
):
    await photos.increment_view_count(photo_id)
    return respond("View count incremented successfully")
