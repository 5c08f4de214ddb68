"""
DynamoDB-backed store.

Each record is one item keyed by its parent path (``pk``) and its own key
(``sk``); the JSON value lives in the ``value`` attribute. A collection is a
query on ``pk``, so ``views/{photoId}`` and ``users/{uid}/images`` are
independent partitions and deleting a record does not cascade into them.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from functools import partial
from typing import Any, Callable, Dict, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from photogram.core.aws import dynamodb_table
from photogram.core.errors import Timeout, Unavailable
from photogram.core.settings import S, Settings
from photogram.store.base import KeyMixin, parent_and_key, split_path

logger = logging.getLogger(__name__)

MAX_FLOOR_RETRIES = 3


def to_ddb(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_ddb(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_ddb(v) for v in value]
    return value


def from_ddb(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    if isinstance(value, dict):
        return {k: from_ddb(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_ddb(v) for v in value]
    return value


def _is_conditional_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoStore(KeyMixin):
    def __init__(self, table: Any, *, timeout_seconds: float = 10.0) -> None:
        self._table = table
        self._timeout = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings = S) -> "DynamoStore":
        return cls(dynamodb_table(settings), timeout_seconds=settings.store_timeout_seconds)

    async def _call(self, fn: Callable[..., Dict[str, Any]], **kwargs: Any) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, partial(fn, **kwargs)),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise Timeout("DynamoDB call timed out") from exc
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise
            raise Unavailable(f"DynamoDB error: {exc.response['Error'].get('Message','unknown')}") from exc
        except BotoCoreError as exc:
            raise Unavailable(f"DynamoDB error: {exc}") from exc

    async def get(self, path: str) -> Optional[Any]:
        parent, key = parent_and_key(path)
        if not parent:
            return (await self.children(key)) or None
        resp = await self._call(self._table.get_item, Key={"pk": parent, "sk": key})
        item = resp.get("Item")
        return from_ddb(item.get("value")) if item else None

    async def set(self, path: str, value: Any) -> None:
        if value is None:
            await self.delete(path)
            return
        parent, key = parent_and_key(path)
        await self._call(self._table.put_item, Item={"pk": parent, "sk": key, "value": to_ddb(value)})

    async def update(self, path: str, values: Dict[str, Any]) -> None:
        if not values:
            return
        parent, key = parent_and_key(path)
        sets, removes = [], []
        names: Dict[str, str] = {"#v": "value"}
        vals: Dict[str, Any] = {}
        for i, (field, value) in enumerate(values.items()):
            names[f"#f{i}"] = field
            if value is None:
                removes.append(f"#v.#f{i}")
            else:
                sets.append(f"#v.#f{i} = :f{i}")
                vals[f":f{i}"] = to_ddb(value)
        expr = ""
        if sets:
            expr += "SET " + ", ".join(sets)
        if removes:
            expr += (" " if expr else "") + "REMOVE " + ", ".join(removes)
        kwargs: Dict[str, Any] = dict(
            Key={"pk": parent, "sk": key},
            UpdateExpression=expr,
            ConditionExpression="attribute_exists(#v)",
            ExpressionAttributeNames=names,
        )
        if vals:
            kwargs["ExpressionAttributeValues"] = vals
        try:
            await self._call(self._table.update_item, **kwargs)
        except ClientError as exc:
            if not _is_conditional_failure(exc):
                raise
            # No record yet: an update creates it with just the given fields.
            fresh = {k: v for k, v in values.items() if v is not None}
            if fresh:
                await self.set(path, fresh)

    async def delete(self, path: str) -> None:
        parent, key = parent_and_key(path)
        await self._call(self._table.delete_item, Key={"pk": parent, "sk": key})

    async def children(self, path: str) -> Dict[str, Any]:
        pk = "/".join(split_path(path))
        out: Dict[str, Any] = {}
        kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("pk").eq(pk)}
        while True:
            resp = await self._call(self._table.query, **kwargs)
            for item in resp.get("Items", []):
                out[item["sk"]] = from_ddb(item.get("value"))
            last = resp.get("LastEvaluatedKey")
            if not last:
                return out
            kwargs["ExclusiveStartKey"] = last

    async def count(self, path: str) -> int:
        pk = "/".join(split_path(path))
        total = 0
        kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("pk").eq(pk), "Select": "COUNT"}
        while True:
            resp = await self._call(self._table.query, **kwargs)
            total += int(resp.get("Count", 0))
            last = resp.get("LastEvaluatedKey")
            if not last:
                return total
            kwargs["ExclusiveStartKey"] = last

    async def increment(
        self,
        path: str,
        field: str,
        delta: int,
        *,
        floor: Optional[int] = None,
    ) -> Optional[int]:
        parent, key = parent_and_key(path)
        names = {"#v": "value", "#f": field}
        condition = "attribute_exists(#v)"
        vals: Dict[str, Any] = {":z": 0, ":d": int(delta)}
        if floor is not None and delta < 0:
            vals[":min"] = int(floor) - int(delta)
            if vals[":min"] <= 0:
                condition += " AND (attribute_not_exists(#v.#f) OR #v.#f >= :min)"
            else:
                condition += " AND #v.#f >= :min"

        for _ in range(MAX_FLOOR_RETRIES):
            try:
                resp = await self._call(
                    self._table.update_item,
                    Key={"pk": parent, "sk": key},
                    UpdateExpression="SET #v.#f = if_not_exists(#v.#f, :z) + :d",
                    ConditionExpression=condition,
                    ExpressionAttributeNames=names,
                    ExpressionAttributeValues=vals,
                    ReturnValues="UPDATED_NEW",
                )
                return int(from_ddb(resp["Attributes"]["value"][field]))
            except ClientError as exc:
                if not _is_conditional_failure(exc):
                    raise
            if ":min" not in vals:
                return None
            # Either the record is gone or the counter would cross the floor.
            try:
                await self._call(
                    self._table.update_item,
                    Key={"pk": parent, "sk": key},
                    UpdateExpression="SET #v.#f = :floor",
                    ConditionExpression="attribute_exists(#v) AND (attribute_not_exists(#v.#f) OR #v.#f < :min)",
                    ExpressionAttributeNames=names,
                    ExpressionAttributeValues={":floor": int(floor), ":min": vals[":min"]},
                )
                return int(floor)
            except ClientError as exc:
                if not _is_conditional_failure(exc):
                    raise
            if await self.get(path) is None:
                return None
        logger.warning("increment of %s.%s gave up after %d contended attempts", path, field, MAX_FLOOR_RETRIES)
        raise Unavailable("Counter update contended")

    async def close(self) -> None:
        return None
