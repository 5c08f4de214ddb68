from __future__ import annotations

import copy
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from photogram.store.memory import InMemoryStore  # noqa: E402

SEED = {
    "users": {
        "u1": {
            "uid": "u1",
            "name": "Ada",
            "email": "ada@example.com",
            "totalLikes": 0,
            "totalViews": 0,
            "images": {"p1": True, "p2": True},
        },
        "u2": {
            "uid": "u2",
            "name": "Grace",
            "email": "grace@example.com",
            "totalLikes": 0,
            "totalViews": 0,
        },
    },
    "images": {
        "public": {
            "p1": {"uid": "u1", "imageUrl": "https://img.example/p1.jpg", "category": "Nature", "createdAt": 100},
            "p2": {"uid": "u1", "imageUrl": "https://img.example/p2.jpg", "category": "Nature", "createdAt": 200},
        }
    },
}


@pytest.fixture
def seed_data():
    return copy.deepcopy(SEED)


@pytest.fixture
def store(seed_data):
    return InMemoryStore(seed_data)
