from __future__ import annotations

import asyncio

import pytest

from photogram.store.memory import InMemoryStore


def run_async(coro):
    return asyncio.run(coro)


def test_get_returns_copies():
    store = InMemoryStore({"users": {"u1": {"name": "Ada"}}})
    user = run_async(store.get("users/u1"))
    user["name"] = "changed"
    assert run_async(store.get("users/u1")) == {"name": "Ada"}


def test_missing_paths_read_as_empty():
    store = InMemoryStore()
    assert run_async(store.get("likes/nope")) is None
    assert run_async(store.children("likes")) == {}
    assert run_async(store.count("views/p1")) == 0


def test_children_are_key_ordered():
    store = InMemoryStore({"likes": {"b": {"n": 2}, "a": {"n": 1}, "c": {"n": 3}}})
    assert list(run_async(store.children("likes"))) == ["a", "b", "c"]


def test_push_keys_follow_insert_order():
    store = InMemoryStore()

    async def scenario():
        keys = [await store.push("views/p1", {"i": i}) for i in range(5)]
        return keys, await store.children("views/p1")

    keys, children = run_async(scenario())
    assert list(children) == keys
    assert [v["i"] for v in children.values()] == [0, 1, 2, 3, 4]
    assert run_async(store.count("views/p1")) == 5


def test_update_merges_and_none_removes():
    store = InMemoryStore({"comments": {"c1": {"text": "hi", "userId": "u1", "extra": 1}}})
    run_async(store.update("comments/c1", {"text": "edited", "extra": None}))
    assert run_async(store.get("comments/c1")) == {"text": "edited", "userId": "u1"}


def test_update_creates_missing_record():
    store = InMemoryStore()
    run_async(store.update("users/u9", {"name": "New"}))
    assert run_async(store.get("users/u9")) == {"name": "New"}


def test_delete_prunes_empty_parents():
    store = InMemoryStore({"views": {"p1": {"v1": {"t": 1}}}, "likes": {"l1": {}}})
    run_async(store.delete("views/p1/v1"))
    assert "views" not in store.dump()
    assert "likes" in store.dump()


def test_set_none_deletes():
    store = InMemoryStore({"likes": {"l1": {"userId": "u1"}}})
    run_async(store.set("likes/l1", None))
    assert run_async(store.get("likes/l1")) is None


def test_increment_treats_missing_counter_as_zero():
    store = InMemoryStore({"users": {"u1": {"name": "Ada"}}})
    assert run_async(store.increment("users/u1", "totalLikes", 1)) == 1
    assert run_async(store.increment("users/u1", "totalLikes", 2)) == 3


def test_increment_floor():
    store = InMemoryStore({"users": {"u1": {"totalLikes": 1}}})
    assert run_async(store.increment("users/u1", "totalLikes", -1, floor=0)) == 0
    assert run_async(store.increment("users/u1", "totalLikes", -1, floor=0)) == 0
    assert run_async(store.get("users/u1"))["totalLikes"] == 0


def test_increment_missing_record_returns_none():
    store = InMemoryStore()
    assert run_async(store.increment("users/ghost", "totalLikes", 1)) is None
    assert run_async(store.get("users/ghost")) is None


def test_empty_path_rejected():
    store = InMemoryStore()
    with pytest.raises(ValueError):
        run_async(store.get(""))
