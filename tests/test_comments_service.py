from __future__ import annotations

import asyncio

import pytest

from photogram.core.errors import Forbidden, NotFound
from photogram.services.comments import CommentService
from photogram.services.likes import LikeService


def run_async(coro):
    return asyncio.run(coro)


def _seed_comment(store, cid, *, photo_id="p1", user_id="u2", text="nice", created_at=1):
    run_async(store.set(f"comments/{cid}", {
        "id": cid,
        "photoId": photo_id,
        "userId": user_id,
        "text": text,
        "createdAt": created_at,
        "likesCount": 0,
    }))


def test_create_comment_persists_record(store):
    svc = CommentService(store)
    comment = run_async(svc.create_comment("u2", "p1", "lovely light"))

    stored = store.dump()["comments"][comment.id]
    assert stored["photoId"] == "p1"
    assert stored["userId"] == "u2"
    assert stored["text"] == "lovely light"
    assert stored["likesCount"] == 0
    assert stored["createdAt"] > 0
    assert stored["id"] == comment.id


def test_create_comment_on_missing_photo(store):
    svc = CommentService(store)
    with pytest.raises(NotFound):
        run_async(svc.create_comment("u2", "nope", "hello"))
    assert "comments" not in store.dump()


def test_photo_comments_newest_first_and_filtered(store):
    _seed_comment(store, "c1", created_at=10)
    _seed_comment(store, "c2", created_at=30)
    _seed_comment(store, "c3", created_at=20, user_id="u1")
    _seed_comment(store, "c4", photo_id="p2", created_at=40)
    svc = CommentService(store)

    out = run_async(svc.get_photo_comments("p1", None))
    assert [c.comment.id for c in out] == ["c2", "c3", "c1"]
    assert out[1].user.name == "Ada"
    assert out[0].user.name == "Grace"


def test_comments_from_missing_authors_are_dropped(store):
    _seed_comment(store, "c1", user_id="ghost")
    _seed_comment(store, "c2", user_id="u1")
    svc = CommentService(store)
    out = run_async(svc.get_photo_comments("p1", None))
    assert [c.comment.id for c in out] == ["c2"]


def test_comment_likes_are_counted_for_viewer(store):
    _seed_comment(store, "c1")
    likes = LikeService(store)
    run_async(likes.toggle_comment_like("u1", "c1"))
    run_async(likes.toggle_comment_like("u2", "c1"))
    svc = CommentService(store)

    (entry,) = run_async(svc.get_photo_comments("p1", "u1"))
    assert entry.comment.likes_count == 2
    assert entry.has_liked is True

    (anon,) = run_async(svc.get_photo_comments("p1", None))
    assert anon.has_liked is False


def test_no_comments(store):
    svc = CommentService(store)
    assert run_async(svc.get_photo_comments("p1", "u1")) == []


def test_update_by_author(store):
    _seed_comment(store, "c1", text="before")
    svc = CommentService(store)
    updated = run_async(svc.update_comment("c1", "u2", "after"))
    assert updated.text == "after"
    assert store.dump()["comments"]["c1"]["text"] == "after"


def test_update_by_someone_else_is_forbidden(store):
    _seed_comment(store, "c1", text="before")
    svc = CommentService(store)
    with pytest.raises(Forbidden) as err:
        run_async(svc.update_comment("c1", "u1", "hijacked"))
    assert err.value.message == "Unauthorized to edit this comment"
    assert store.dump()["comments"]["c1"]["text"] == "before"


def test_update_missing_comment(store):
    svc = CommentService(store)
    with pytest.raises(NotFound):
        run_async(svc.update_comment("nope", "u1", "text"))


def test_delete_cascades_comment_likes(store):
    _seed_comment(store, "c1")
    _seed_comment(store, "c2")
    likes = LikeService(store)
    run_async(likes.toggle_comment_like("u1", "c1"))
    run_async(likes.toggle_comment_like("u2", "c1"))
    run_async(likes.toggle_comment_like("u1", "c2"))
    svc = CommentService(store)

    run_async(svc.delete_comment("c1", "u2"))

    assert "c1" not in store.dump()["comments"]
    assert run_async(svc.get_comment_likes_count("c1")) == 0
    assert run_async(svc.has_user_liked_comment("u1", "c1")) is False
    assert run_async(svc.has_user_liked_comment("u2", "c1")) is False
    assert run_async(svc.get_comment_likes_count("c2")) == 1


def test_delete_by_someone_else_is_forbidden(store):
    _seed_comment(store, "c1")
    svc = CommentService(store)
    with pytest.raises(Forbidden) as err:
        run_async(svc.delete_comment("c1", "u1"))
    assert err.value.message == "Unauthorized to delete this comment"
    assert "c1" in store.dump()["comments"]


def test_comment_authors_carry_upload_count(store):
    _seed_comment(store, "c1", user_id="u1")
    _seed_comment(store, "c2", user_id="u2", created_at=2)
    svc = CommentService(store)

    out = run_async(svc.get_photo_comments("p1", None))
    uploads = {c.user.uid: c.user.number_of_uploads for c in out}
    assert uploads == {"u1": 2, "u2": 0}
