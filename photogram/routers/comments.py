from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from photogram.auth.deps import Identity, get_identity, get_optional_identity
from photogram.core.envelope import respond
from photogram.core.errors import Forbidden, InvalidInput, NotFound
from photogram.dependencies import get_comment_service
from photogram.models import CommentTextReq
from photogram.services.comments import CommentService

router = APIRouter(prefix="/comments", tags=["comments"])


def _require_text(body: Optional[CommentTextReq]) -> str:
    text = ((body.text if body else None) or "").strip()
    if not text:
        raise InvalidInput("Comment text is required")
    return text


@router.post("/{photo_id}")
async def create_comment(
    photo_id: str,
    body: Optional[CommentTextReq] = None,
    identity: Identity = Depends(get_identity),
    comments: CommentService = Depends(get_comment_service),
):
    comment = await comments.create_comment(identity.uid, photo_id, _require_text(body))
    return respond("Comment created successfully", comment, status_code=201)


@router.get("/{photo_id}")
async def get_photo_comments(
    photo_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    comments: CommentService = Depends(get_comment_service),
):
    items = await comments.get_photo_comments(photo_id, identity.uid if identity else None)
    return respond("Comments retrieved successfully", items)


# Editing or deleting someone else's comment answers 404, same as a missing one.
@router.put("/{comment_id}")
async def update_comment(
    comment_id: str,
    body: Optional[CommentTextReq] = None,
    identity: Identity = Depends(get_identity),
    comments: CommentService = Depends(get_comment_service),
):
    text = _require_text(body)
    try:
        comment = await comments.update_comment(comment_id, identity.uid, text)
    except Forbidden as exc:
        raise NotFound(exc.message) from exc
    return respond("Comment updated successfully", comment)


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    identity: Identity = Depends(get_identity),
    comments: CommentService = Depends(get_comment_service),
):
    try:
        await comments.delete_comment(comment_id, identity.uid)
    except Forbidden as exc:
        raise NotFound(exc.message) from exc
    return respond("Comment deleted successfully")
