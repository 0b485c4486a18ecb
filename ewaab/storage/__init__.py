"""
Storage abstractions.

Integration Points:
- AccountStore → users / userCodes tables
- TokenVersionStore → users.tokenVersion column or Redis (INCR)
- ResourceLookup → content tables (posts, comments, messages, ...)
"""

from ewaab.storage.base import (
    AccountStore,
    ResourceLookup,
    TokenVersionStore,
)
from ewaab.storage.local import InMemoryAccountStore, InMemoryResourceLookup
from ewaab.storage.redis_store import RedisTokenVersionStore

__all__ = [
    "AccountStore",
    "ResourceLookup",
    "TokenVersionStore",
    "InMemoryAccountStore",
    "InMemoryResourceLookup",
    "RedisTokenVersionStore",
]
