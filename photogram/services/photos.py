from __future__ import annotations

import logging
from typing import Dict, List, Optional

from photogram.core.errors import NotFound, Unavailable
from photogram.core.time import now_ms
from photogram.metrics import record_orphan, record_view
from photogram.models import Pagination, Photo, PhotoWithUser, User
from photogram.services.likes import LIKES, PHOTO_FIELD, LikeService, tally_likes
from photogram.store.base import Store

logger = logging.getLogger(__name__)

PUBLIC_PHOTOS = "images/public"


class PhotoService:
    def __init__(self, store: Store, likes: Optional[LikeService] = None) -> None:
        self._store = store
        self._likes = likes or LikeService(store)

    async def get_user_by_uid(self, uid: str) -> Optional[User]:
        if not uid:
            return None
        raw = await self._store.get(f"users/{uid}")
        if not isinstance(raw, dict):
            return None
        raw = {**raw, "uid": raw.get("uid") or uid}
        raw["numberOfUploads"] = await self._store.count(f"users/{uid}/images")
        return User.model_validate(raw)

    async def get_photo_by_id(self, photo_id: str) -> Optional[Photo]:
        if not photo_id:
            return None
        raw = await self._store.get(f"{PUBLIC_PHOTOS}/{photo_id}")
        if not isinstance(raw, dict):
            return None
        return Photo.model_validate({**raw, "id": photo_id})

    async def get_photo_likes_count(self, photo_id: str) -> int:
        return await self._likes.get_photo_likes_count(photo_id)

    async def has_user_liked_photo(self, user_id: str, photo_id: str) -> bool:
        return await self._likes.has_user_liked_photo(user_id, photo_id)

    async def get_photo_views_count(self, photo_id: str) -> int:
        try:
            return await self._store.count(f"views/{photo_id}")
        except Unavailable as exc:
            logger.warning("view count for %s unavailable: %s", photo_id, exc)
            return 0

    async def increment_view_count(self, photo_id: str) -> None:
        photo = await self.get_photo_by_id(photo_id)
        if photo is None:
            raise NotFound("Photo not found")
        await self._store.push(
            f"views/{photo_id}",
            {"timestamp": now_ms(), "photoId": photo_id, "uid": photo.uid or ""},
        )
        record_view()

    async def get_categories_with_pagination(
        self,
        viewer_id: Optional[str],
        pagination: Pagination,
    ) -> Dict[str, List[PhotoWithUser]]:
        raw_photos = await self._store.children(PUBLIC_PHOTOS)
        if not raw_photos:
            return {}

        photos = [
            Photo.model_validate({**raw, "id": key})
            for key, raw in raw_photos.items()
            if isinstance(raw, dict)
        ]
        photos.sort(key=lambda p: p.created_at, reverse=True)

        categories: Dict[str, List[Photo]] = {}
        for photo in photos:
            categories.setdefault(photo.category_name, []).append(photo)

        # One pass over likes serves every category and page; views are only
        # read for the photos that land inside a page window.
        all_likes = await self._store.children(LIKES)
        like_counts, viewer_liked = tally_likes(all_likes, PHOTO_FIELD, viewer_id)

        result: Dict[str, List[PhotoWithUser]] = {}
        for category, members in categories.items():
            window = members[pagination.start:pagination.end]
            resolved: List[PhotoWithUser] = []
            for photo in window:
                owner = await self.get_user_by_uid(photo.uid)
                if owner is None:
                    logger.warning("skipping photo %s: owner %s not found", photo.id, photo.uid)
                    record_orphan("photo")
                    continue
                photo.likes = like_counts.get(photo.id, 0)
                photo.views = await self.get_photo_views_count(photo.id)
                resolved.append(PhotoWithUser(photo=photo, user=owner, has_liked=photo.id in viewer_liked))
            if resolved:
                result[category] = resolved
        return result
