"""
Path-addressed store interface.

Paths are slash-separated (``users/{uid}``, ``views/{photoId}/{viewId}``).
A path with children is a collection; ``children`` returns them keyed by
child key in ascending key order, which for ``new_key`` keys is creation
order.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Tuple

from photogram.core.keys import push_id


def split_path(path: str) -> List[str]:
    parts = [p for p in (path or "").strip("/").split("/") if p]
    if not parts:
        raise ValueError("empty store path")
    return parts


def parent_and_key(path: str) -> Tuple[str, str]:
    parts = split_path(path)
    return "/".join(parts[:-1]), parts[-1]


class Store(Protocol):
    """Interface for the hierarchical store."""

    async def get(self, path: str) -> Optional[Any]:
        ...

    async def set(self, path: str, value: Any) -> None:
        ...

    async def update(self, path: str, values: Dict[str, Any]) -> None:
        ...

    async def delete(self, path: str) -> None:
        ...

    def new_key(self, path: str) -> str:
        ...

    async def push(self, path: str, value: Any) -> str:
        ...

    async def children(self, path: str) -> Dict[str, Any]:
        ...

    async def count(self, path: str) -> int:
        ...

    async def increment(
        self,
        path: str,
        field: str,
        delta: int,
        *,
        floor: Optional[int] = None,
    ) -> Optional[int]:
        ...

    async def close(self) -> None:
        ...


class KeyMixin:
    def new_key(self, path: str) -> str:
        split_path(path)
        return push_id()

    async def push(self, path: str, value: Any) -> str:
        key = self.new_key(path)
        await self.set(f"{path.rstrip('/')}/{key}", value)  # type: ignore[attr-defined]
        return key
