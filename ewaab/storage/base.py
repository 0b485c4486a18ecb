"""
Storage abstraction layer.

The auth core never talks to a database directly. It reads accounts,
visitor codes and resource ownership through these interfaces, and
bumps token versions through TokenVersionStore.

Integration Points:
- AccountStore → users / userCodes tables
- TokenVersionStore → users.tokenVersion column, or Redis
- ResourceLookup → posts / comments / messages / messageGroups / notifications
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ewaab.core.models import (
    AccountRecord,
    ResourceKind,
    ResourceRecord,
    UserCodeRecord,
)


# =============================================================================
# Storage Interfaces
# =============================================================================


class AccountStore(ABC):
    """Read/write access to durable accounts and visitor codes."""

    @abstractmethod
    async def get_account(self, account_id: str) -> AccountRecord | None:
        """Get an account by id."""
        pass

    @abstractmethod
    async def find_account(self, identifier: str) -> AccountRecord | None:
        """Get an account by email (identifier contains '@') or username."""
        pass

    @abstractmethod
    async def save_account(self, account: AccountRecord) -> None:
        """Create or replace an account."""
        pass

    @abstractmethod
    async def get_user_code(self, code_id: str) -> UserCodeRecord | None:
        """Get a visitor code by id."""
        pass

    @abstractmethod
    async def save_user_code(self, user_code: UserCodeRecord) -> None:
        """Create or replace a visitor code."""
        pass

    @abstractmethod
    async def list_user_codes(self) -> list[UserCodeRecord]:
        """All visitor codes, oldest first."""
        pass

    @abstractmethod
    async def delete_user_code(self, code_id: str) -> bool:
        """Delete a visitor code. Returns False if it did not exist."""
        pass


class TokenVersionStore(ABC):
    """
    Per-account token version counters.

    `increment` MUST be a single atomic operation in the backing store;
    concurrent revocations each take effect and the counter never regresses.
    """

    @abstractmethod
    async def get_version(self, account_id: str, visitor: bool = False) -> int | None:
        """Current version, or None if the account/code is unknown."""
        pass

    @abstractmethod
    async def increment(self, account_id: str, visitor: bool = False) -> int | None:
        """Atomically add one. Returns the new version, or None if unknown."""
        pass

    @abstractmethod
    async def initialize(self, account_id: str, visitor: bool = False, version: int = 0) -> None:
        """Set the starting version for a new account if none exists yet."""
        pass


class ResourceLookup(ABC):
    """Read-only ownership lookups for authorization decisions."""

    @abstractmethod
    async def lookup(self, kind: ResourceKind, resource_id: str) -> ResourceRecord | None:
        """Get ownership facts for a resource, or None if it does not exist."""
        pass
