"""
Dependency wiring for the FastAPI app.

Services are built once per application in ``create_app`` and resolved
per request from ``app.state``.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from photogram.core.locks import KeyedLock
from photogram.core.settings import S, Settings
from photogram.services.comments import CommentService
from photogram.services.likes import LikeService
from photogram.services.photos import PhotoService
from photogram.services.users import UserService
from photogram.store.base import Store
from photogram.store.dynamo import DynamoStore
from photogram.store.memory import InMemoryStore


@dataclass(frozen=True)
class Services:
    photos: PhotoService
    likes: LikeService
    comments: CommentService
    users: UserService


def build_store(settings: Settings = S) -> Store:
    if settings.store_backend == "memory":
        return InMemoryStore()
    if settings.store_backend == "dynamodb":
        return DynamoStore.from_settings(settings)
    raise RuntimeError(f"Unknown STORE_BACKEND {settings.store_backend!r}")


def build_services(store: Store) -> Services:
    likes = LikeService(store, KeyedLock())
    photos = PhotoService(store, likes)
    return Services(
        photos=photos,
        likes=likes,
        comments=CommentService(store, likes, photos),
        users=UserService(store, photos),
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_photo_service(request: Request) -> PhotoService:
    return request.app.state.services.photos


def get_like_service(request: Request) -> LikeService:
    return request.app.state.services.likes


def get_comment_service(request: Request) -> CommentService:
    return request.app.state.services.comments


def get_user_service(request: Request) -> UserService:
    return request.app.state.services.users
