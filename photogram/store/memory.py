"""
In-process store backed by a nested dict, for development and tests.

Every operation completes without awaiting, so under the event loop each
call is atomic with respect to other requests.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from photogram.store.base import KeyMixin, split_path


class InMemoryStore(KeyMixin):
    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self._root: Dict[str, Any] = copy.deepcopy(data) if data else {}

    def dump(self) -> Dict[str, Any]:
        return copy.deepcopy(self._root)

    def _node(self, path: str) -> Optional[Any]:
        node: Any = self._root
        for part in split_path(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    async def get(self, path: str) -> Optional[Any]:
        return copy.deepcopy(self._node(path))

    async def set(self, path: str, value: Any) -> None:
        if value is None:
            await self.delete(path)
            return
        parts = split_path(path)
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

    async def update(self, path: str, values: Dict[str, Any]) -> None:
        current = self._node(path)
        merged = dict(current) if isinstance(current, dict) else {}
        for field, value in values.items():
            if value is None:
                merged.pop(field, None)
            else:
                merged[field] = copy.deepcopy(value)
        await self.set(path, merged or None)

    async def delete(self, path: str) -> None:
        parts = split_path(path)
        trail = [self._root]
        node: Any = self._root
        for part in parts[:-1]:
            if not isinstance(node, dict) or part not in node:
                return
            node = node[part]
            trail.append(node)
        if not isinstance(node, dict):
            return
        node.pop(parts[-1], None)
        # prune empty parents
        for depth in range(len(parts) - 1, 0, -1):
            if trail[depth]:
                break
            trail[depth - 1].pop(parts[depth - 1], None)

    async def children(self, path: str) -> Dict[str, Any]:
        node = self._node(path)
        if not isinstance(node, dict):
            return {}
        return {key: copy.deepcopy(node[key]) for key in sorted(node)}

    async def count(self, path: str) -> int:
        node = self._node(path)
        return len(node) if isinstance(node, dict) else 0

    async def increment(
        self,
        path: str,
        field: str,
        delta: int,
        *,
        floor: Optional[int] = None,
    ) -> Optional[int]:
        record = self._node(path)
        if not isinstance(record, dict):
            return None
        value = int(record.get(field) or 0) + int(delta)
        if floor is not None:
            value = max(floor, value)
        record[field] = value
        return value

    async def close(self) -> None:
        return None
