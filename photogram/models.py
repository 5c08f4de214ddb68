from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_CATEGORY = "Other"


class StoreModel(BaseModel):
    # Records keep the camelCase field names used in the store.
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Photo(StoreModel):
    id: str = ""
    uid: str = ""
    image_url: str = ""
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: int = 0
    views: int = 0
    likes: int = 0

    @property
    def category_name(self) -> str:
        return self.category or DEFAULT_CATEGORY


class User(StoreModel):
    uid: str
    name: Optional[str] = None
    email: Optional[str] = None
    number_of_uploads: int = 0
    total_views: int = 0
    total_likes: int = 0


class Comment(StoreModel):
    id: str
    photo_id: str
    user_id: str
    text: str
    created_at: int = 0
    likes_count: int = 0


class Like(StoreModel):
    id: str
    # photo likes were historically stored under "postId"
    post_id: str
    user_id: str


class CommentLike(StoreModel):
    id: str
    comment_id: str
    user_id: str
    created_at: int = 0


class PhotoWithUser(StoreModel):
    photo: Photo
    user: User
    has_liked: bool = False


class CommentWithUser(StoreModel):
    comment: Comment
    user: User
    has_liked: bool = False


class ToggleResult(StoreModel):
    has_liked: bool
    message: str


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    page_size: int = 10

    @property
    def start(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def end(self) -> int:
        return self.start + self.page_size


# -----------------------------
# Request bodies
# -----------------------------
class CommentTextReq(BaseModel):
    text: Optional[str] = None


class UserUpdateReq(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: Optional[str] = Field(default=None)

