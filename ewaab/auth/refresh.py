"""
Refresh tokens and revocation.

Tokens are never stored. Each durable account and each visitor code
carries a `tokenVersion` counter; refresh tokens embed the version that
was current when they were issued. Bumping the counter (revoke) makes
every outstanding refresh token stale, and once the short-lived access
tokens run out every session is gone.
"""

from __future__ import annotations

from datetime import timedelta
import logging

from pydantic import BaseModel

from ewaab.auth.capabilities import UserType
from ewaab.auth.errors import AccountNotFoundError, StaleTokenError
from ewaab.auth.jwt import (
    TokenCodec,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
)
from ewaab.auth.media import create_media_token
from ewaab.config import Settings, get_settings
from ewaab.storage.base import AccountStore, TokenVersionStore

logger = logging.getLogger(__name__)


class TokenBundle(BaseModel):
    """Tokens handed out on login or refresh."""
    access_token: str
    media_token: str
    refresh_token: str | None = None  # only on login; refresh keeps the cookie
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires


class _AccountState(BaseModel):
    role: UserType
    email_verified: bool


class RefreshManager:
    """Issue token bundles, rotate them on refresh, revoke by version bump."""

    def __init__(
        self,
        codec: TokenCodec,
        accounts: AccountStore,
        versions: TokenVersionStore,
        settings: Settings | None = None,
    ):
        self.codec = codec
        self.accounts = accounts
        self.versions = versions
        self.settings = settings or get_settings()

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.access_token_expire_minutes)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(days=self.settings.refresh_token_expire_days)

    @property
    def media_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.media_token_expire_minutes)

    # -------------------------------------------------------------------------
    # Issuing
    # -------------------------------------------------------------------------

    def issue_access_token(self, account_id: str, role: UserType, email_verified: bool) -> str:
        return create_access_token(self.codec, account_id, role, email_verified, self.access_ttl)

    def issue_refresh_token(self, account_id: str, token_version: int, role: UserType) -> str:
        return create_refresh_token(self.codec, account_id, token_version, role, self.refresh_ttl)

    def issue_session(
        self,
        account_id: str,
        role: UserType,
        email_verified: bool,
        token_version: int,
    ) -> TokenBundle:
        """Full bundle for a fresh login."""
        return TokenBundle(
            access_token=self.issue_access_token(account_id, role, email_verified),
            refresh_token=self.issue_refresh_token(account_id, token_version, role),
            media_token=create_media_token(self.codec, account_id, role, expires_in=self.media_ttl),
            expires_in=int(self.access_ttl.total_seconds()),
        )

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    async def _account_state(self, account_id: str, visitor: bool) -> _AccountState | None:
        if visitor:
            code = await self.accounts.get_user_code(account_id)
            if code is None:
                return None
            return _AccountState(role=UserType.VISITOR, email_verified=True)

        account = await self.accounts.get_account(account_id)
        if account is None:
            return None
        return _AccountState(role=account.user_type, email_verified=account.email_verified)

    async def handle_refresh(self, refresh_token: str) -> TokenBundle:
        """
        Exchange a refresh token for a new access token and media token.

        The access token carries the account's current role and email
        state, not what the refresh token remembered.

        Raises:
            InvalidTokenError / ExpiredTokenError / MalformedPayloadError
            AccountNotFoundError: account deleted or visitor code removed
            StaleTokenError: sessions were revoked since this token was issued
        """
        data = decode_refresh_token(self.codec, refresh_token)
        visitor = data.role == UserType.VISITOR

        state = await self._account_state(data.id, visitor)
        if state is None:
            logger.info("Refresh rejected: account %s not found", data.id)
            raise AccountNotFoundError("user not found")

        current_version = await self.versions.get_version(data.id, visitor)
        if current_version is None:
            raise AccountNotFoundError("user not found")
        if current_version != data.token_version:
            logger.info(
                "Refresh rejected: stale token version for %s (%s != %s)",
                data.id, data.token_version, current_version,
            )
            raise StaleTokenError("refresh token has been revoked")

        return TokenBundle(
            access_token=self.issue_access_token(data.id, state.role, state.email_verified),
            media_token=create_media_token(self.codec, data.id, state.role, expires_in=self.media_ttl),
            expires_in=int(self.access_ttl.total_seconds()),
        )

    # -------------------------------------------------------------------------
    # Revocation
    # -------------------------------------------------------------------------

    async def revoke(self, account_id: str, visitor: bool = False) -> int:
        """
        Invalidate every outstanding refresh token for an account or visitor code.

        Returns the new token version.
        """
        if await self._account_state(account_id, visitor) is None:
            raise AccountNotFoundError(f"no {'visitor code' if visitor else 'user'} found with id {account_id}")

        version = await self.versions.increment(account_id, visitor)
        if version is None:
            raise AccountNotFoundError(f"no token version found for {account_id}")

        logger.info("Revoked tokens for %s (version now %s)", account_id, version)
        return version
