"""
Local storage implementations for development and tests.

These are in-memory implementations that work without any external
services. Mutations run under an asyncio.Lock so version increments
stay atomic across concurrent requests on one event loop.
"""

from __future__ import annotations

import asyncio

from ewaab.core.models import (
    AccountRecord,
    ResourceKind,
    ResourceRecord,
    UserCodeRecord,
)
from ewaab.storage.base import AccountStore, ResourceLookup, TokenVersionStore


# =============================================================================
# In-Memory Accounts (+ token versions)
# =============================================================================


class InMemoryAccountStore(AccountStore, TokenVersionStore):
    """Accounts and visitor codes in dicts; token versions live on the records."""

    def __init__(self):
        self._accounts: dict[str, AccountRecord] = {}
        self._by_email: dict[str, str] = {}  # email -> account id
        self._by_username: dict[str, str] = {}  # username -> account id
        self._codes: dict[str, UserCodeRecord] = {}
        self._lock = asyncio.Lock()

    async def get_account(self, account_id: str) -> AccountRecord | None:
        return self._accounts.get(account_id)

    async def find_account(self, identifier: str) -> AccountRecord | None:
        if "@" in identifier:
            account_id = self._by_email.get(identifier.lower())
        else:
            account_id = self._by_username.get(identifier)
        return self._accounts.get(account_id) if account_id else None

    async def save_account(self, account: AccountRecord) -> None:
        async with self._lock:
            self._accounts[account.id] = account
            self._by_email[account.email.lower()] = account.id
            self._by_username[account.username] = account.id

    async def get_user_code(self, code_id: str) -> UserCodeRecord | None:
        return self._codes.get(code_id)

    async def save_user_code(self, user_code: UserCodeRecord) -> None:
        async with self._lock:
            self._codes[user_code.id] = user_code

    async def list_user_codes(self) -> list[UserCodeRecord]:
        return sorted(self._codes.values(), key=lambda code: code.created_at)

    async def delete_user_code(self, code_id: str) -> bool:
        async with self._lock:
            return self._codes.pop(code_id, None) is not None

    # -------------------------------------------------------------------------
    # TokenVersionStore
    # -------------------------------------------------------------------------

    async def get_version(self, account_id: str, visitor: bool = False) -> int | None:
        record = self._codes.get(account_id) if visitor else self._accounts.get(account_id)
        return record.token_version if record else None

    async def increment(self, account_id: str, visitor: bool = False) -> int | None:
        async with self._lock:
            table = self._codes if visitor else self._accounts
            record = table.get(account_id)
            if record is None:
                return None
            updated = record.model_copy(update={"token_version": record.token_version + 1})
            table[account_id] = updated
            return updated.token_version

    async def initialize(self, account_id: str, visitor: bool = False, version: int = 0) -> None:
        # Versions are created together with the record
        pass


# =============================================================================
# In-Memory Resource Lookup
# =============================================================================


class InMemoryResourceLookup(ResourceLookup):
    """Resource ownership table keyed by (kind, id)."""

    def __init__(self):
        self._resources: dict[tuple[ResourceKind, str], ResourceRecord] = {}

    def add(self, kind: ResourceKind, record: ResourceRecord) -> None:
        self._resources[(ResourceKind(kind), record.id)] = record

    def remove(self, kind: ResourceKind, resource_id: str) -> None:
        self._resources.pop((ResourceKind(kind), resource_id), None)

    async def lookup(self, kind: ResourceKind, resource_id: str) -> ResourceRecord | None:
        return self._resources.get((ResourceKind(kind), resource_id))
