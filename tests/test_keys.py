from __future__ import annotations

from photogram.core.keys import PUSH_CHARS, push_id


def test_push_id_shape():
    key = push_id()
    assert len(key) == 20
    assert all(ch in PUSH_CHARS for ch in key)


def test_push_ids_sort_by_time():
    older = push_id(now_ms=1_700_000_000_000)
    newer = push_id(now_ms=1_700_000_000_001)
    assert older < newer


def test_push_ids_in_same_millisecond_are_unique_and_ordered():
    keys = [push_id(now_ms=1_700_000_000_500) for _ in range(200)]
    assert len(set(keys)) == 200
    assert keys == sorted(keys)
