from __future__ import annotations

from typing import Any, Dict, Optional

from photogram.core.errors import InvalidInput, NotFound
from photogram.models import User
from photogram.services.photos import PhotoService
from photogram.store.base import Store

# uid, email and the counters are never writable through the profile.
PROFILE_FIELDS = ("name",)

MAX_NAME_LEN = 80


def _clean_str(value: Optional[str], *, max_len: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput("Value must be a string")
    trimmed = value.strip()
    if not trimmed:
        return None
    if max_len is not None and len(trimmed) > max_len:
        raise InvalidInput(f"Value too long (max {max_len})")
    return trimmed


def normalize_profile_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if "name" in data:
        out["name"] = _clean_str(data.get("name"), max_len=MAX_NAME_LEN)
    return out


class UserService:
    def __init__(self, store: Store, photos: Optional[PhotoService] = None) -> None:
        self._store = store
        self._photos = photos or PhotoService(store)

    async def get_me(self, uid: str) -> User:
        user = await self._photos.get_user_by_uid(uid)
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_me(self, uid: str, updates: Dict[str, Any]) -> User:
        normalized = normalize_profile_payload(
            {k: v for k, v in updates.items() if k in PROFILE_FIELDS}
        )
        if normalized:
            current = await self._store.get(f"users/{uid}")
            if not isinstance(current, dict):
                normalized = {"uid": uid, **normalized}
            await self._store.update(f"users/{uid}", normalized)
        return await self.get_me(uid)
