from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Set, Tuple

from photogram.core.errors import NotFound, Unavailable
from photogram.core.locks import KeyedLock
from photogram.core.time import now_ms
from photogram.metrics import record_like_toggle
from photogram.models import CommentLike, Like, ToggleResult
from photogram.store.base import Store

logger = logging.getLogger(__name__)

LIKES = "likes"
COMMENT_LIKES = "commentLikes"

PHOTO_FIELD = "postId"
COMMENT_FIELD = "commentId"


def find_like(likes: Dict[str, Any], field: str, target_id: str, user_id: str) -> Optional[str]:
    for key, like in likes.items():
        if isinstance(like, dict) and like.get("userId") == user_id and like.get(field) == target_id:
            return key
    return None


def tally_likes(
    likes: Dict[str, Any],
    field: str,
    viewer_id: Optional[str] = None,
) -> Tuple[Dict[str, int], Set[str]]:
    """Return (target id -> like count, target ids liked by the viewer)."""
    counts: Dict[str, int] = {}
    liked: Set[str] = set()
    for like in likes.values():
        if not isinstance(like, dict):
            continue
        target = like.get(field)
        if not target:
            continue
        counts[target] = counts.get(target, 0) + 1
        if viewer_id and like.get("userId") == viewer_id:
            liked.add(target)
    return counts, liked


class LikeService:
    def __init__(self, store: Store, locks: Optional[KeyedLock] = None) -> None:
        self._store = store
        self._locks = locks or KeyedLock()

    async def toggle_like(self, user_id: str, photo_id: str) -> ToggleResult:
        photo = await self._store.get(f"images/public/{photo_id}")
        if not photo:
            raise NotFound("Photo not found")
        owner_id = photo.get("uid")

        async with self._locks.hold(("photo", user_id, photo_id)):
            likes = await self._store.children(LIKES)
            existing = find_like(likes, PHOTO_FIELD, photo_id, user_id)
            if existing:
                await self._store.delete(f"{LIKES}/{existing}")
                await self._adjust_owner_likes(owner_id, -1)
                result = ToggleResult(has_liked=False, message="Like removed successfully.")
            else:
                like_id = self._store.new_key(LIKES)
                like = Like(id=like_id, post_id=photo_id, user_id=user_id)
                await self._store.set(f"{LIKES}/{like_id}", like.to_store())
                await self._adjust_owner_likes(owner_id, 1)
                result = ToggleResult(has_liked=True, message="Like added successfully.")

        record_like_toggle("photo", result.has_liked)
        return result

    async def _adjust_owner_likes(self, owner_id: Optional[str], delta: int) -> None:
        if not owner_id:
            logger.warning("photo has no owner uid; totalLikes not adjusted")
            return
        total = await self._store.increment(f"users/{owner_id}", "totalLikes", delta, floor=0)
        if total is None:
            logger.warning("owner %s has no user record; totalLikes not adjusted", owner_id)

    async def toggle_comment_like(self, user_id: str, comment_id: str) -> ToggleResult:
        comment = await self._store.get(f"comments/{comment_id}")
        if not comment:
            raise NotFound("Comment not found")

        async with self._locks.hold(("comment", user_id, comment_id)):
            likes = await self._store.children(COMMENT_LIKES)
            existing = find_like(likes, COMMENT_FIELD, comment_id, user_id)
            if existing:
                await self._store.delete(f"{COMMENT_LIKES}/{existing}")
                result = ToggleResult(has_liked=False, message="Comment like removed successfully.")
            else:
                like_id = self._store.new_key(COMMENT_LIKES)
                like = CommentLike(id=like_id, comment_id=comment_id, user_id=user_id, created_at=now_ms())
                await self._store.set(f"{COMMENT_LIKES}/{like_id}", like.to_store())
                result = ToggleResult(has_liked=True, message="Comment liked successfully.")

        record_like_toggle("comment", result.has_liked)
        return result

    # -----------------------------
    # Read-side helpers: a store failure reads as "no likes".
    # -----------------------------
    async def _load(self, collection: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._store.children(collection)
        except Unavailable as exc:
            logger.warning("could not read %s: %s", collection, exc)
            return None

    async def has_user_liked_photo(self, user_id: str, photo_id: str) -> bool:
        likes = await self._load(LIKES)
        return bool(likes) and find_like(likes, PHOTO_FIELD, photo_id, user_id) is not None

    async def get_photo_likes_count(self, photo_id: str) -> int:
        likes = await self._load(LIKES)
        if not likes:
            return 0
        counts, _ = tally_likes(likes, PHOTO_FIELD)
        return counts.get(photo_id, 0)

    async def has_user_liked_comment(self, user_id: str, comment_id: str) -> bool:
        likes = await self._load(COMMENT_LIKES)
        return bool(likes) and find_like(likes, COMMENT_FIELD, comment_id, user_id) is not None

    async def get_comment_likes_count(self, comment_id: str) -> int:
        likes = await self._load(COMMENT_LIKES)
        if not likes:
            return 0
        counts, _ = tally_likes(likes, COMMENT_FIELD)
        return counts.get(comment_id, 0)
