"""
Shared fixtures for the auth core tests.

Time never comes from the wall clock here: the codec reads a `Clock`
fixture that tests move forward explicitly.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from ewaab.auth.context import Principal
from ewaab.auth.jwt import CodecConfig, TokenCodec
from ewaab.auth.login import hash_password
from ewaab.auth.refresh import RefreshManager
from ewaab.config import Settings
from ewaab.core.models import AccountRecord, UserType
from ewaab.storage.local import InMemoryAccountStore, InMemoryResourceLookup

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
TEST_ISSUER = "EWAAB"
ALICE_PASSWORD = "correct horse battery staple"


class Clock:
    """Manually advanced clock."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


# =============================================================================
# Config / codec
# =============================================================================


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret_key=TEST_SECRET,
        jwt_issuer=TEST_ISSUER,
    )


@pytest.fixture
def clock():
    return Clock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def codec(settings, clock):
    return TokenCodec(CodecConfig.from_settings(settings), now=clock)


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def accounts():
    """In-memory accounts; also serves as the token version store."""
    return InMemoryAccountStore()


@pytest.fixture
def resources():
    return InMemoryResourceLookup()


@pytest.fixture
def manager(codec, accounts, settings):
    return RefreshManager(codec, accounts, accounts, settings)


def make_account(
    account_id: str,
    user_type: UserType = UserType.USER,
    email_verified: bool = True,
    token_version: int = 0,
    password: str = ALICE_PASSWORD,
) -> AccountRecord:
    name = account_id.removeprefix("user_")
    return AccountRecord(
        id=account_id,
        email=f"{name}@example.com",
        username=name,
        name=name.title(),
        password_hash=hash_password(password),
        user_type=user_type,
        email_verified=email_verified,
        token_version=token_version,
    )


@pytest_asyncio.fixture
async def alice(accounts):
    """Verified regular user."""
    account = make_account("user_alice")
    await accounts.save_account(account)
    return account


# =============================================================================
# Principals
# =============================================================================


@pytest.fixture
def guest():
    return Principal.guest()


@pytest.fixture
def user_principal():
    return Principal(id="u1", role=UserType.USER, email_verified=True)


@pytest.fixture
def other_user():
    return Principal(id="u2", role=UserType.USER, email_verified=True)


@pytest.fixture
def admin():
    return Principal(id="admin1", role=UserType.ADMIN, email_verified=True)


@pytest.fixture
def visitor():
    return Principal(id="code1", role=UserType.VISITOR, email_verified=True)


@pytest.fixture
def mentor():
    return Principal(id="m1", role=UserType.MENTOR, email_verified=True)


@pytest.fixture
def third_party():
    return Principal(id="t1", role=UserType.THIRD_PARTY, email_verified=True)


@pytest.fixture
def account_factory():
    return make_account


@pytest.fixture
def alice_password():
    return ALICE_PASSWORD
