from __future__ import annotations

from fastapi import APIRouter, Depends

from photogram.auth.deps import Identity, get_identity
from photogram.core.envelope import respond
from photogram.dependencies import get_like_service
from photogram.services.likes import LikeService

router = APIRouter(prefix="/like", tags=["likes"])


@router.post("/toggle/{photo_id}")
async def toggle_like(
    photo_id: str,
    identity: Identity = Depends(get_identity),
    likes: LikeService = Depends(get_like_service),
):
    result = await likes.toggle_like(identity.uid, photo_id)
    return respond(result.message, {"hasLiked": result.has_liked})


@router.post("/comment/toggle/{comment_id}")
async def toggle_comment_like(
    comment_id: str,
    identity: Identity = Depends(get_identity),
    likes: LikeService = Depends(get_like_service),
):
    result = await likes.toggle_comment_like(identity.uid, comment_id)
    return respond(result.message, {"hasLiked": result.has_liked})
