# =============================================================================
# Login
# =============================================================================
#
# Two ways in:
#   - durable accounts: email or username + password, email must be verified
#   - visitors: a disposable "<codeId>:<secret>" code handed out by an admin
#
# Both end in a TokenBundle issued by the RefreshManager, so refresh and
# revocation work the same way for either.
#
# =============================================================================

from __future__ import annotations

import hashlib
import logging
import secrets

from ewaab.auth.capabilities import UserType
from ewaab.auth.errors import (
    AccountNotFoundError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
)
from ewaab.auth.refresh import RefreshManager, TokenBundle
from ewaab.core.models import AccountRecord, UserCodeRecord
from ewaab.core.utils import generate_id
from ewaab.storage.base import AccountStore

logger = logging.getLogger(__name__)

CODE_SEPARATOR = ":"
PBKDF2_ITERATIONS = 100_000


# =============================================================================
# Password Hashing
# =============================================================================

def hash_password(password: str) -> str:
    """
    Hash a password (or visitor code) using PBKDF2-SHA256.

    Returns: salt:hash format string
    """
    salt = secrets.token_hex(32)
    hash_bytes = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations=PBKDF2_ITERATIONS,
    )
    return f"{salt}:{hash_bytes.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        salt, stored_hash = password_hash.split(":")
    except (ValueError, AttributeError):
        return False
    hash_bytes = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations=PBKDF2_ITERATIONS,
    )
    return secrets.compare_digest(hash_bytes.hex(), stored_hash)


# =============================================================================
# Durable Accounts
# =============================================================================

class LoginResult(TokenBundle):
    """Token bundle plus who it was issued to."""
    account_id: str
    role: UserType


async def authenticate(accounts: AccountStore, identifier: str, password: str) -> AccountRecord:
    """
    Check credentials for a durable account.

    `identifier` is an email if it contains '@', otherwise a username.

    Raises:
        InvalidCredentialsError: unknown account or wrong password
        EmailNotVerifiedError: the account has not verified its email yet
    """
    account = await accounts.find_account(identifier)
    if account is None:
        logger.info("Login failed: no account for identifier")
        raise InvalidCredentialsError("invalid username or password")

    if not account.email_verified:
        raise EmailNotVerifiedError("email is not verified")

    if not verify_password(password, account.password_hash):
        logger.info("Login failed: wrong password for %s", account.id)
        raise InvalidCredentialsError("invalid username or password")

    return account


async def login(manager: RefreshManager, identifier: str, password: str) -> LoginResult:
    """Authenticate a durable account and issue access, refresh and media tokens."""
    account = await authenticate(manager.accounts, identifier, password)

    version = await manager.versions.get_version(account.id)
    if version is None:
        version = account.token_version
        await manager.versions.initialize(account.id, version=version)

    bundle = manager.issue_session(account.id, account.user_type, account.email_verified, version)
    logger.info("Logged in %s as %s", account.id, account.user_type.value)
    return LoginResult(**bundle.model_dump(), account_id=account.id, role=account.user_type)


# =============================================================================
# Visitor Codes
# =============================================================================

def split_user_code(code: str) -> tuple[str, str]:
    """Split "<codeId>:<secret>" at the first separator."""
    code_id, sep, secret = code.partition(CODE_SEPARATOR)
    if not sep or not code_id or not secret:
        raise InvalidCredentialsError("invalid user code")
    return code_id, secret


async def login_visitor(manager: RefreshManager, code: str) -> LoginResult:
    """
    Log in with a visitor code.

    Visitors have no email, so their access tokens always claim a
    verified email; the visitor role itself keeps them out of
    logged-in-only operations.
    """
    code_id, _ = split_user_code(code)

    record = await manager.accounts.get_user_code(code_id)
    if record is None or not verify_password(code, record.code_hash):
        logger.info("Visitor login failed for code %s", code_id)
        raise InvalidCredentialsError("invalid user code")

    version = await manager.versions.get_version(code_id, visitor=True)
    if version is None:
        version = record.token_version
        await manager.versions.initialize(code_id, visitor=True, version=version)

    bundle = manager.issue_session(code_id, UserType.VISITOR, True, version)
    logger.info("Visitor %s logged in", code_id)
    return LoginResult(**bundle.model_dump(), account_id=code_id, role=UserType.VISITOR)


async def create_user_code(manager: RefreshManager, name: str) -> tuple[UserCodeRecord, str]:
    """
    Create a visitor code.

    Returns the stored record and the plaintext code. The plaintext is
    not kept anywhere, so this is the only chance to hand it out.
    """
    code_id = generate_id("code")
    code = f"{code_id}{CODE_SEPARATOR}{secrets.token_urlsafe(24)}"
    record = UserCodeRecord(id=code_id, name=name, code_hash=hash_password(code), token_version=0)

    await manager.accounts.save_user_code(record)
    await manager.versions.initialize(code_id, visitor=True, version=0)

    logger.info("Created visitor code %s (%s)", code_id, name)
    return record, code


async def list_user_codes(manager: RefreshManager) -> list[UserCodeRecord]:
    return await manager.accounts.list_user_codes()


async def delete_user_code(manager: RefreshManager, code_id: str) -> None:
    """
    Delete a visitor code.

    Outstanding refresh tokens for the code stop working at once, since
    refreshing looks the code up first.

    Raises:
        AccountNotFoundError: no code with this id
    """
    if not await manager.accounts.delete_user_code(code_id):
        raise AccountNotFoundError(f"cannot find user code with id {code_id}")
    logger.info("Deleted visitor code %s", code_id)
