from __future__ import annotations

import asyncio

import pytest

from photogram.core.errors import NotFound, Unavailable
from photogram.models import Pagination
from photogram.services.likes import LikeService
from photogram.services.photos import PhotoService
from photogram.store.memory import InMemoryStore


def run_async(coro):
    return asyncio.run(coro)


class BrokenViewsStore(InMemoryStore):
    async def count(self, path):
        if path.startswith("views/"):
            raise Unavailable("views unavailable")
        return await super().count(path)


def _ids(items):
    return [item.photo.id for item in items]


def test_newest_first_within_category(store):
    svc = PhotoService(store)

    page1 = run_async(svc.get_categories_with_pagination(None, Pagination(page=1, page_size=1)))
    assert list(page1) == ["Nature"]
    assert _ids(page1["Nature"]) == ["p2"]

    page2 = run_async(svc.get_categories_with_pagination(None, Pagination(page=2, page_size=1)))
    assert _ids(page2["Nature"]) == ["p1"]


def test_page_past_end_is_empty(store):
    svc = PhotoService(store)
    result = run_async(svc.get_categories_with_pagination(None, Pagination(page=5, page_size=10)))
    assert result == {}


def test_categories_paginate_independently(store):
    run_async(store.set("images/public/p3", {"uid": "u2", "imageUrl": "x3", "category": "Nature", "createdAt": 300}))
    run_async(store.set("images/public/p4", {"uid": "u2", "imageUrl": "x4", "category": "Urban", "createdAt": 50}))
    svc = PhotoService(store)

    page1 = run_async(svc.get_categories_with_pagination(None, Pagination(page=1, page_size=2)))
    assert _ids(page1["Nature"]) == ["p3", "p2"]
    assert _ids(page1["Urban"]) == ["p4"]

    page2 = run_async(svc.get_categories_with_pagination(None, Pagination(page=2, page_size=2)))
    assert _ids(page2["Nature"]) == ["p1"]
    assert "Urban" not in page2


def test_missing_category_groups_under_other(store):
    run_async(store.set("images/public/p5", {"uid": "u2", "imageUrl": "x5", "createdAt": 10}))
    svc = PhotoService(store)
    result = run_async(svc.get_categories_with_pagination(None, Pagination()))
    assert _ids(result["Other"]) == ["p5"]


def test_orphaned_photos_are_skipped(store):
    run_async(store.set("images/public/p6", {"uid": "ghost", "imageUrl": "x6", "category": "Lost", "createdAt": 10}))
    run_async(store.set("images/public/p7", {"uid": "ghost", "imageUrl": "x7", "category": "Nature", "createdAt": 999}))
    svc = PhotoService(store)

    result = run_async(svc.get_categories_with_pagination(None, Pagination(page=1, page_size=10)))
    assert "Lost" not in result
    assert _ids(result["Nature"]) == ["p2", "p1"]


def test_entries_carry_owner_likes_views_and_viewer_flag(store):
    likes = LikeService(store)
    run_async(likes.toggle_like("u2", "p1"))
    run_async(likes.toggle_like("u1", "p1"))
    svc = PhotoService(store)
    for _ in range(3):
        run_async(svc.increment_view_count("p1"))

    result = run_async(svc.get_categories_with_pagination("u2", Pagination()))
    by_id = {item.photo.id: item for item in result["Nature"]}

    assert by_id["p1"].photo.likes == 2
    assert by_id["p1"].photo.views == 3
    assert by_id["p1"].has_liked is True
    assert by_id["p1"].user.uid == "u1"
    assert by_id["p1"].user.number_of_uploads == 2
    assert by_id["p2"].photo.likes == 0
    assert by_id["p2"].has_liked is False

    anonymous = run_async(svc.get_categories_with_pagination(None, Pagination()))
    assert all(not item.has_liked for item in anonymous["Nature"])


def test_empty_store_returns_no_categories():
    svc = PhotoService(InMemoryStore())
    assert run_async(svc.get_categories_with_pagination("u1", Pagination())) == {}


def test_get_user_by_uid(store):
    svc = PhotoService(store)
    user = run_async(svc.get_user_by_uid("u1"))
    assert user.name == "Ada"
    assert user.number_of_uploads == 2
    assert run_async(svc.get_user_by_uid("u2")).number_of_uploads == 0
    assert run_async(svc.get_user_by_uid("ghost")) is None
    assert run_async(svc.get_user_by_uid("")) is None


def test_get_photo_by_id(store):
    svc = PhotoService(store)
    photo = run_async(svc.get_photo_by_id("p1"))
    assert photo.id == "p1"
    assert photo.image_url == "https://img.example/p1.jpg"
    assert run_async(svc.get_photo_by_id("nope")) is None
    assert run_async(svc.get_photo_by_id("")) is None


def test_every_view_is_recorded(store):
    svc = PhotoService(store)
    for _ in range(4):
        run_async(svc.increment_view_count("p2"))
    assert run_async(svc.get_photo_views_count("p2")) == 4
    (view, *_) = store.dump()["views"]["p2"].values()
    assert view["photoId"] == "p2"
    assert view["uid"] == "u1"
    assert view["timestamp"] > 0


def test_view_on_missing_photo_raises(store):
    svc = PhotoService(store)
    with pytest.raises(NotFound):
        run_async(svc.increment_view_count("nope"))
    assert "views" not in store.dump()


def test_view_count_degrades_to_zero(seed_data):
    svc = PhotoService(BrokenViewsStore(seed_data))
    assert run_async(svc.get_photo_views_count("p1")) == 0
    result = run_async(svc.get_categories_with_pagination(None, Pagination()))
    assert [item.photo.views for item in result["Nature"]] == [0, 0]


def test_like_read_helpers(store):
    run_async(LikeService(store).toggle_like("u2", "p2"))
    svc = PhotoService(store)
    assert run_async(svc.get_photo_likes_count("p2")) == 1
    assert run_async(svc.has_user_liked_photo("u2", "p2")) is True
    assert run_async(svc.has_user_liked_photo("u1", "p2")) is False
