"""
Ordered list storage used as the only persistence primitive.

Items are opaque strings; callers own (de)serialization. Index 0 is the front
of the list, i.e. the most recently pushed item.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from shared.errors import ConcurrentUpdateError, StoreError

logger = logging.getLogger(__name__)


class ListStore(ABC):
    """Contract over an external ordered key-value list"""

    @abstractmethod
    async def push_front(self, item: str) -> int:
        """Push item to the front, return the new length"""

    @abstractmethod
    async def range(self, start: int = 0, end: int = -1) -> List[str]:
        """Items from start to end inclusive, front-to-back (end=-1 means last)"""

    @abstractmethod
    async def trim(self, start: int, end: int) -> None:
        """Keep only the inclusive index range start..end"""

    @abstractmethod
    async def clear(self) -> None:
        pass

    @abstractmethod
    async def replace_all(self, items: Sequence[str], expected: Optional[Sequence[str]] = None,
                          limit: Optional[int] = None) -> None:
        """
        Replace the whole list with items, keeping their front-to-back order.

        When expected is given the replace only happens if the list still equals
        expected; otherwise ConcurrentUpdateError is raised and nothing changes.
        When limit is given the list is trimmed to the first limit items.
        """

    async def read_all(self) -> List[str]:
        return await self.range(0, -1)


def _slice_bounds(length: int, start: int, end: int):
    # Redis LRANGE/LTRIM index semantics: inclusive end, negatives count from the back
    if start < 0:
        start = max(length + start, 0)
    if end < 0:
        end = length + end
    return start, min(end, length - 1) + 1


class InMemoryListStore(ListStore):
    """
    Process-local list with the same semantics as the Redis adapter.

    No method awaits while touching the list, so each call is atomic on the
    event loop.
    """

    def __init__(self, items: Optional[Sequence[str]] = None):
        self._items: List[str] = list(items or [])

    async def push_front(self, item: str) -> int:
        self._items.insert(0, item)
        return len(self._items)

    async def range(self, start: int = 0, end: int = -1) -> List[str]:
        lo, hi = _slice_bounds(len(self._items), start, end)
        return self._items[lo:hi] if lo < hi else []

    async def trim(self, start: int, end: int) -> None:
        lo, hi = _slice_bounds(len(self._items), start, end)
        self._items = self._items[lo:hi] if lo < hi else []

    async def clear(self) -> None:
        self._items = []

    async def replace_all(self, items: Sequence[str], expected: Optional[Sequence[str]] = None,
                          limit: Optional[int] = None) -> None:
        if expected is not None and list(expected) != self._items:
            raise ConcurrentUpdateError("List changed since it was read")
        new_items = list(items)
        self._items = new_items[:limit] if limit is not None else new_items


class RedisListStore(ListStore):
    """Redis list adapter (LPUSH/LRANGE/LTRIM/DEL, WATCH for conditional replace)"""

    def __init__(self, client: redis.Redis, key: str):
        self.redis = client
        self.key = key

    async def push_front(self, item: str) -> int:
        try:
            return await self.redis.lpush(self.key, item)
        except RedisError as e:
            logger.error(f"LPUSH {self.key} failed: {e}")
            raise StoreError("Backing list push failed") from e

    async def range(self, start: int = 0, end: int = -1) -> List[str]:
        try:
            items = await self.redis.lrange(self.key, start, end)
        except RedisError as e:
            logger.error(f"LRANGE {self.key} failed: {e}")
            raise StoreError("Backing list read failed") from e
        if not isinstance(items, list):
            raise StoreError("Backing list returned malformed data")
        return items

    async def trim(self, start: int, end: int) -> None:
        try:
            await self.redis.ltrim(self.key, start, end)
        except RedisError as e:
            logger.error(f"LTRIM {self.key} failed: {e}")
            raise StoreError("Backing list trim failed") from e

    async def clear(self) -> None:
        try:
            await self.redis.delete(self.key)
        except RedisError as e:
            logger.error(f"DEL {self.key} failed: {e}")
            raise StoreError("Backing list clear failed") from e

    async def replace_all(self, items: Sequence[str], expected: Optional[Sequence[str]] = None,
                          limit: Optional[int] = None) -> None:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                if expected is not None:
                    await pipe.watch(self.key)
                    current = await pipe.lrange(self.key, 0, -1)
                    if list(current) != list(expected):
                        await pipe.unwatch()
                        raise ConcurrentUpdateError("List changed since it was read")
                pipe.multi()
                pipe.delete(self.key)
                if items:
                    pipe.rpush(self.key, *items)
                if limit is not None:
                    pipe.ltrim(self.key, 0, limit - 1)
                await pipe.execute()
        except WatchError as e:
            raise ConcurrentUpdateError("List changed during replace") from e
        except RedisError as e:
            logger.error(f"Replace of {self.key} failed: {e}")
            raise StoreError("Backing list replace failed") from e
