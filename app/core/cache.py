import json
from collections.abc import Callable
from typing import Any, Optional

import redis.asyncio as redis
from loguru import logger

from app.core.config import settings


class RedisCache:
    """
    Generic Redis cache wrapper for the application.
    Handles connection pooling, serialization, and error handling.

    A client can be injected (tests use a fakeredis client); otherwise one is
    created lazily from ``settings.REDIS_URL``.
    """

    _instance: Optional["RedisCache"] = None

    def __init__(self, client: redis.Redis | None = None):
        self._client: redis.Redis | None = client

    @classmethod
    def get_instance(cls) -> "RedisCache":
        if cls._instance is None:
            cls._instance = RedisCache()
        return cls._instance

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            if not settings.REDIS_URL:
                raise RuntimeError("REDIS_URL is not configured")

            logger.info("Initializing Redis Cache Client")
            self._client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,  # Auto-decode to strings
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                health_check_interval=30,
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(self, key: str) -> Any:
        try:
            client = await self.get_client()
            return await client.get(key)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis GET failed for {key}: {e}")
            return None

    async def get_json(self, key: str) -> Any:
        raw = await self.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to decode cached value for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None):
        try:
            client = await self.get_client()
            val = value if isinstance(value, str) else json.dumps(value)
            if ttl:
                await client.setex(key, ttl, val)
            else:
                await client.set(key, val)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis SET failed for {key}: {e}")

    async def delete(self, key: str):
        try:
            client = await self.get_client()
            await client.delete(key)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis DELETE failed for {key}: {e}")

    # Counters (reroll quota)

    async def incr(self, key: str, ttl: int) -> int | None:
        """Atomically increment a counter and (re)arm its expiry. None when Redis is unreachable."""
        try:
            client = await self.get_client()
            async with client.pipeline(transaction=True) as pipe:
                count, _ = await pipe.incr(key).expire(key, ttl).execute()
            return int(count)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis INCR failed for {key}: {e}")
            return None

    async def decr(self, key: str):
        try:
            client = await self.get_client()
            await client.decr(key)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis DECR failed for {key}: {e}")

    async def get_int(self, key: str) -> int:
        raw = await self.get(key)
        try:
            return int(raw) if raw else 0
        except ValueError:
            logger.warning(f"Non integer counter at {key}: {raw!r}")
            return 0

    # List helpers (recommendation history)

    async def push_capped(self, key: str, value: Any, limit: int):
        """Prepend a JSON value to a list and keep only the newest ``limit`` entries."""
        try:
            client = await self.get_client()
            await client.lpush(key, json.dumps(value))
            await client.ltrim(key, 0, limit - 1)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis LPUSH failed for {key}: {e}")

    async def get_list(self, key: str) -> list[Any]:
        try:
            client = await self.get_client()
            raw_items = await client.lrange(key, 0, -1)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis LRANGE failed for {key}: {e}")
            return []

        items = []
        for raw in raw_items:
            try:
                items.append(json.loads(raw))
            except json.JSONDecodeError:
                continue
        return items

    async def update_list_item(self, key: str, update: Callable[[Any], Any | None]) -> Any | None:
        """
        Rewrite the first list element ``update`` accepts, under WATCH.

        ``update`` gets each decoded element in turn and returns the new value,
        or None to move on. Positions come from the raw LRANGE so undecodable
        elements never shift them, and a concurrent write to the list retries
        the whole read-modify-write. Returns the stored value, or None.
        """

        async def apply(pipe) -> Any | None:
            raw_items = await pipe.lrange(key, 0, -1)
            for index, raw in enumerate(raw_items):
                try:
                    item = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                updated = update(item)
                if updated is not None:
                    pipe.multi()
                    pipe.lset(key, index, json.dumps(updated))
                    return updated
            return None

        try:
            client = await self.get_client()
            return await client.transaction(apply, key, value_from_callable=True)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis list update failed for {key}: {e}")
            return None


cache = RedisCache.get_instance()
