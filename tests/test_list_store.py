from unittest.mock import AsyncMock, MagicMock

import fakeredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, WatchError

from shared.errors import ConcurrentUpdateError, StoreError
from shared.storage.list_store import InMemoryListStore, RedisListStore
from apps.api.services.prompt_repository import PromptRepository


async def test_push_front_and_range_order():
    store = InMemoryListStore()
    await store.push_front("a")
    await store.push_front("b")
    assert await store.push_front("c") == 3

    assert await store.read_all() == ["c", "b", "a"]
    assert await store.range(0, 1) == ["c", "b"]
    assert await store.range(-1, -1) == ["a"]
    assert await store.range(5, 10) == []


async def test_trim_keeps_front_items():
    store = InMemoryListStore(["e", "d", "c", "b", "a"])
    await store.trim(0, 2)
    assert await store.read_all() == ["e", "d", "c"]

    await store.trim(0, 999)
    assert await store.read_all() == ["e", "d", "c"]


async def test_clear_empties_list():
    store = InMemoryListStore(["a"])
    await store.clear()
    assert await store.read_all() == []


async def test_replace_all_keeps_order_and_limit():
    store = InMemoryListStore(["x"])
    await store.replace_all(["c", "b", "a"], limit=2)
    assert await store.read_all() == ["c", "b"]


async def test_conditional_replace_rejects_changed_list():
    store = InMemoryListStore(["b", "a"])
    snapshot = await store.read_all()
    await store.push_front("c")

    with pytest.raises(ConcurrentUpdateError):
        await store.replace_all(["B", "A"], expected=snapshot)
    assert await store.read_all() == ["c", "b", "a"]


async def test_conditional_replace_applies_unchanged_list():
    store = InMemoryListStore(["b", "a"])
    snapshot = await store.read_all()
    await store.replace_all(["B", "a"], expected=snapshot)
    assert await store.read_all() == ["B", "a"]


async def test_redis_store_uses_list_commands():
    client = MagicMock()
    client.lpush = AsyncMock(return_value=1)
    client.ltrim = AsyncMock(return_value=True)
    client.lrange = AsyncMock(return_value=["item"])
    store = RedisListStore(client, "prompts")

    assert await store.push_front("item") == 1
    await store.trim(0, 999)
    assert await store.read_all() == ["item"]

    client.lpush.assert_awaited_once_with("prompts", "item")
    client.ltrim.assert_awaited_once_with("prompts", 0, 999)
    client.lrange.assert_awaited_once_with("prompts", 0, -1)


async def test_redis_store_wraps_connection_errors():
    client = MagicMock()
    client.lrange = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    store = RedisListStore(client, "prompts")

    with pytest.raises(StoreError) as exc_info:
        await store.read_all()
    assert "connection refused" not in str(exc_info.value)


async def test_redis_store_rejects_malformed_reply():
    client = MagicMock()
    client.lrange = AsyncMock(return_value=None)
    store = RedisListStore(client, "prompts")

    with pytest.raises(StoreError):
        await store.read_all()


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


async def test_redis_replace_with_matching_snapshot(redis_client):
    await redis_client.rpush("prompts", "b", "a")
    store = RedisListStore(redis_client, "prompts")
    snapshot = await store.read_all()

    await store.replace_all(["B", "a"], expected=snapshot)

    assert await redis_client.lrange("prompts", 0, -1) == ["B", "a"]


async def test_redis_replace_rejects_changed_list(redis_client):
    await redis_client.rpush("prompts", "b", "a")
    store = RedisListStore(redis_client, "prompts")
    snapshot = await store.read_all()
    await redis_client.lpush("prompts", "c")

    with pytest.raises(ConcurrentUpdateError):
        await store.replace_all(["B", "A"], expected=snapshot)
    assert await redis_client.lrange("prompts", 0, -1) == ["c", "b", "a"]


async def test_redis_replace_applies_limit(redis_client):
    await redis_client.rpush("prompts", "x")
    store = RedisListStore(redis_client, "prompts")

    await store.replace_all(["c", "b", "a"], limit=2)

    assert await redis_client.lrange("prompts", 0, -1) == ["c", "b"]


async def test_redis_replace_with_no_items_empties_list(redis_client):
    await redis_client.rpush("prompts", "x")
    store = RedisListStore(redis_client, "prompts")

    await store.replace_all([], expected=["x"])

    assert await redis_client.exists("prompts") == 0


async def test_redis_replace_turns_watch_error_into_conflict():
    pipe = MagicMock()
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    pipe.watch = AsyncMock()
    pipe.unwatch = AsyncMock()
    pipe.lrange = AsyncMock(return_value=["b", "a"])
    pipe.execute = AsyncMock(side_effect=WatchError("prompts changed"))
    client = MagicMock()
    client.pipeline = MagicMock(return_value=pipe)
    store = RedisListStore(client, "prompts")

    with pytest.raises(ConcurrentUpdateError):
        await store.replace_all(["B", "a"], expected=["b", "a"])

    client.pipeline.assert_called_once_with(transaction=True)
    pipe.watch.assert_awaited_once_with("prompts")
    pipe.multi.assert_called_once_with()
    pipe.delete.assert_called_once_with("prompts")
    pipe.rpush.assert_called_once_with("prompts", "B", "a")
    pipe.unwatch.assert_not_awaited()


async def test_redis_replace_wraps_connection_errors():
    pipe = MagicMock()
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    pipe.execute = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    client = MagicMock()
    client.pipeline = MagicMock(return_value=pipe)
    store = RedisListStore(client, "prompts")

    with pytest.raises(StoreError) as exc_info:
        await store.replace_all(["a"], limit=1000)
    assert not isinstance(exc_info.value, ConcurrentUpdateError)
    pipe.ltrim.assert_called_once_with("prompts", 0, 999)


async def test_repository_comment_round_trip_over_redis(redis_client, free_payload):
    store = RedisListStore(redis_client, "prompts")
    repository = PromptRepository(store, max_prompts=1000, max_retries=3)
    first = await repository.create(free_payload)
    second = await repository.create(dict(free_payload, name="Second Prompt"))

    updated = await repository.add_comment(first.id, {"text": "works well", "rating": 4})

    assert updated.rating == 4.0
    assert updated.rating_count == 1
    stored = await repository.list_all()
    assert {p.id for p in stored} == {first.id, second.id}
    assert (await repository.get(first.id)).comments[0].text == "works well"
    # Rewrite keeps the list front-to-back order
    items = await redis_client.lrange("prompts", 0, -1)
    assert second.id in items[0] and first.id in items[1]
