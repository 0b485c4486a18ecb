"""
Redis-backed token version counters.

Revocation is a single server-side INCR, so concurrent logout-everywhere
requests from several devices each bump the counter exactly once.
Redis does not know which accounts exist: a missing key reads as
version 0 and account existence is answered by the AccountStore.
"""

from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as redis

from ewaab.storage.base import TokenVersionStore

logger = logging.getLogger(__name__)


TOKEN_VERSION_PREFIX = "auth:token_version:"


class RedisTokenVersionStore(TokenVersionStore):
    def __init__(self, url: str = "", *, client: Any | None = None, namespace: str | None = None):
        if client is None and not url:
            raise ValueError("RedisTokenVersionStore needs a redis url or a client")
        self._client = client if client is not None else redis.from_url(url, decode_responses=True)
        self._namespace = namespace.strip() if namespace else None

    def _key(self, account_id: str, visitor: bool) -> str:
        kind = "visitor" if visitor else "user"
        key = f"{TOKEN_VERSION_PREFIX}{kind}:{account_id}"
        if self._namespace:
            return f"{self._namespace}:{key}"
        return key

    async def get_version(self, account_id: str, visitor: bool = False) -> int | None:
        value = await self._client.get(self._key(account_id, visitor))
        if value is None:
            return 0
        try:
            return int(value)
        except ValueError:
            logger.warning("Non-integer token version stored for %s", account_id)
            return None

    async def increment(self, account_id: str, visitor: bool = False) -> int | None:
        return int(await self._client.incr(self._key(account_id, visitor)))

    async def initialize(self, account_id: str, visitor: bool = False, version: int = 0) -> None:
        await self._client.set(self._key(account_id, visitor), version, nx=True)

    async def close(self) -> None:
        await self._client.aclose()
