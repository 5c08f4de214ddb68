from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from photogram.core.errors import Forbidden, NotFound, Unavailable
from photogram.core.time import now_ms
from photogram.metrics import record_comment, record_orphan
from photogram.models import Comment, CommentWithUser, User
from photogram.services.photos import PhotoService
from photogram.services.likes import COMMENT_FIELD, COMMENT_LIKES, LikeService, tally_likes
from photogram.store.base import Store

logger = logging.getLogger(__name__)

COMMENTS = "comments"


class CommentService:
    def __init__(
        self,
        store: Store,
        likes: Optional[LikeService] = None,
        photos: Optional[PhotoService] = None,
    ) -> None:
        self._store = store
        self._likes = likes or LikeService(store)
        self._photos = photos or PhotoService(store, self._likes)

    async def create_comment(self, user_id: str, photo_id: str, text: str) -> Comment:
        photo = await self._store.get(f"images/public/{photo_id}")
        if not photo:
            raise NotFound("Photo not found")

        comment_id = self._store.new_key(COMMENTS)
        comment = Comment(
            id=comment_id,
            photo_id=photo_id,
            user_id=user_id,
            text=text,
            created_at=now_ms(),
            likes_count=0,
        )
        await self._store.set(f"{COMMENTS}/{comment_id}", comment.to_store())
        record_comment("created")
        return comment

    async def get_comment_by_id(self, comment_id: str) -> Optional[Comment]:
        if not comment_id:
            return None
        raw = await self._store.get(f"{COMMENTS}/{comment_id}")
        if not isinstance(raw, dict):
            return None
        return Comment.model_validate({**raw, "id": raw.get("id") or comment_id})

    async def get_photo_comments(self, photo_id: str, viewer_id: Optional[str]) -> List[CommentWithUser]:
        raw_comments = await self._store.children(COMMENTS)
        if not raw_comments:
            return []

        try:
            comment_likes = await self._store.children(COMMENT_LIKES)
        except Unavailable as exc:
            logger.warning("comment likes unavailable for photo %s: %s", photo_id, exc)
            comment_likes = {}
        like_counts, viewer_liked = tally_likes(comment_likes, COMMENT_FIELD, viewer_id)

        authors: Dict[str, Optional[User]] = {}
        out: List[CommentWithUser] = []
        for key, raw in raw_comments.items():
            if not isinstance(raw, dict) or raw.get("photoId") != photo_id:
                continue
            comment = Comment.model_validate({**raw, "id": raw.get("id") or key})

            if comment.user_id not in authors:
                authors[comment.user_id] = await self._photos.get_user_by_uid(comment.user_id)
            author = authors[comment.user_id]
            if author is None:
                logger.warning("skipping comment %s: author %s not found", comment.id, comment.user_id)
                record_orphan("comment")
                continue

            comment.likes_count = like_counts.get(comment.id, 0)
            out.append(CommentWithUser(comment=comment, user=author, has_liked=comment.id in viewer_liked))

        out.sort(key=lambda c: c.comment.created_at, reverse=True)
        return out

    async def get_comment_likes_count(self, comment_id: str) -> int:
        return await self._likes.get_comment_likes_count(comment_id)

    async def has_user_liked_comment(self, user_id: str, comment_id: str) -> bool:
        return await self._likes.has_user_liked_comment(user_id, comment_id)

    async def _owned_comment(self, comment_id: str, user_id: str, action: str) -> Comment:
        comment = await self.get_comment_by_id(comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        if comment.user_id != user_id:
            raise Forbidden(f"Unauthorized to {action} this comment")
        return comment

    async def update_comment(self, comment_id: str, user_id: str, text: str) -> Comment:
        comment = await self._owned_comment(comment_id, user_id, "edit")
        await self._store.update(f"{COMMENTS}/{comment_id}", {"text": text})
        record_comment("updated")
        return comment.model_copy(update={"text": text})

    async def delete_comment(self, comment_id: str, user_id: str) -> None:
        await self._owned_comment(comment_id, user_id, "delete")

        comment_likes = await self._store.children(COMMENT_LIKES)
        doomed = [
            key
            for key, like in comment_likes.items()
            if isinstance(like, dict) and like.get(COMMENT_FIELD) == comment_id
        ]
        await asyncio.gather(*(self._store.delete(f"{COMMENT_LIKES}/{key}") for key in doomed))

        await self._store.delete(f"{COMMENTS}/{comment_id}")
        record_comment("deleted")
