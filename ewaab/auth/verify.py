"""
Single-use links sent by email: verify address, invite, reset password.

Each kind is its own token purpose, so a reset link can never be
replayed as an invite and vice versa.
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import EmailStr, Field

from ewaab.auth.capabilities import UserType
from ewaab.auth.jwt import TokenCodec, TokenModel, TokenPurpose
from ewaab.config import Settings, get_settings


def link_ttl(settings: Settings | None = None) -> timedelta:
    """Lifetime of emailed links (VERIFY_TOKEN_EXPIRE_MINUTES, one hour by default)."""
    if settings is None:
        settings = get_settings()
    return timedelta(minutes=settings.verify_token_expire_minutes)


def _expiry(expires_in: timedelta | None, settings: Settings | None) -> timedelta:
    return link_ttl(settings) if expires_in is None else expires_in


class VerifyTokenData(TokenModel):
    id: str


class InviteTokenData(TokenModel):
    email: EmailStr
    name: str
    user_type: UserType = Field(alias="userType")
    alumni_year: int | None = Field(default=None, alias="alumniYear")


class ResetPasswordTokenData(TokenModel):
    email: EmailStr


def create_verify_token(
    codec: TokenCodec,
    account_id: str,
    expires_in: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    data = VerifyTokenData(id=account_id)
    return codec.sign(data.to_claims(), TokenPurpose.VERIFY, _expiry(expires_in, settings))


def create_invite_token(
    codec: TokenCodec,
    email: str,
    name: str,
    user_type: UserType,
    alumni_year: int | None = None,
    expires_in: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    """Invite someone to register with a preassigned role."""
    if UserType(user_type) in (UserType.GUEST, UserType.VISITOR):
        raise ValueError(f"cannot invite a {UserType(user_type).value}")
    data = InviteTokenData(email=email, name=name, user_type=user_type, alumni_year=alumni_year)
    claims = data.to_claims()
    if alumni_year is None:
        claims.pop("alumniYear")
    return codec.sign(claims, TokenPurpose.INVITE, _expiry(expires_in, settings))


def create_reset_password_token(
    codec: TokenCodec,
    email: str,
    expires_in: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    data = ResetPasswordTokenData(email=email)
    return codec.sign(data.to_claims(), TokenPurpose.RESET_PASSWORD, _expiry(expires_in, settings))


def decode_verify_token(codec: TokenCodec, token: str) -> VerifyTokenData:
    return codec.load(token, TokenPurpose.VERIFY, VerifyTokenData)


def decode_invite_token(codec: TokenCodec, token: str) -> InviteTokenData:
    return codec.load(token, TokenPurpose.INVITE, InviteTokenData)


def decode_reset_password_token(codec: TokenCodec, token: str) -> ResetPasswordTokenData:
    return codec.load(token, TokenPurpose.RESET_PASSWORD, ResetPasswordTokenData)
