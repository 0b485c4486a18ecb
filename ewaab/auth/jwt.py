# =============================================================================
# Token Codec
# =============================================================================
#
# Signs and verifies every token the backend hands out:
#   - access tokens (every request)
#   - refresh tokens (cookie, rotated against the account token version)
#   - media tokens (query string / cookie for the file server)
#   - verify / invite / resetPassword tokens (emailed links)
#
# All of them are HS256 JWTs with an `iss` claim and a `purpose` claim.
# Field names of the payload models below are part of the wire contract:
# already-issued tokens must keep decoding after a deploy.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Literal, TypeVar
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError
import jwt

from ewaab.auth.capabilities import UserType
from ewaab.auth.errors import (
    ExpiredTokenError,
    InvalidTokenError,
    MalformedPayloadError,
    SigningError,
)
from ewaab.config import Settings
from ewaab.core.utils import utc_now

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TokenPurpose(str, Enum):
    """Discriminator stored in the `purpose` claim."""

    ACCESS = "access"
    REFRESH = "refresh"
    MEDIA = "media"
    VERIFY = "verify"
    INVITE = "invite"
    RESET_PASSWORD = "resetPassword"


PURPOSE_CLAIM = "purpose"
RESERVED_CLAIMS = frozenset({"iss", "iat", "exp", PURPOSE_CLAIM})


# =============================================================================
# Models
# =============================================================================

class CodecConfig(BaseModel):
    """Secret material for the codec. Passed explicitly, never read from globals."""

    model_config = ConfigDict(frozen=True)

    secret: str = ""
    issuer: str = ""
    algorithm: Literal["HS256"] = "HS256"

    @classmethod
    def from_settings(cls, settings: Settings) -> CodecConfig:
        return cls(
            secret=settings.jwt_secret_key,
            issuer=settings.jwt_issuer,
            algorithm=settings.jwt_algorithm,
        )


class TokenModel(BaseModel):
    """Base for payload models: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_claims(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class AccessTokenData(TokenModel):
    """Access token payload."""
    id: str
    role: UserType
    email_verified: bool = Field(alias="emailVerified")


class RefreshTokenData(TokenModel):
    """Refresh token payload."""
    id: str
    token_version: int = Field(alias="tokenVersion")
    role: UserType


class MediaTokenData(TokenModel):
    """Media access token payload."""
    id: str
    role: UserType
    kind: Literal["media"] = "media"
    media_id: str | None = Field(default=None, alias="mediaId")

    def permits(self, media_id: str, owner_id: str | None = None) -> bool:
        """
        Check whether this token grants access to one media object.

        A scoped token grants exactly its `mediaId`. An unscoped token only
        grants the bearer's own profile media, i.e. objects owned by `id`.
        """
        if self.media_id is not None:
            return self.media_id == media_id
        return owner_id is not None and owner_id == self.id


# =============================================================================
# Codec
# =============================================================================

class TokenCodec:
    """
    Sign and verify purpose-tagged JWTs.

    The config is read on every call so `rotate()` takes effect for the
    next token without restarting the process.
    """

    def __init__(
        self,
        config: CodecConfig,
        now: Callable[[], datetime] = utc_now,
    ):
        self._config = config
        self._now = now

    @property
    def config(self) -> CodecConfig:
        return self._config

    def rotate(self, config: CodecConfig) -> None:
        """Swap in a new secret/issuer. Tokens signed with the old secret stop verifying."""
        self._config = config
        logger.info("Token codec configuration rotated (issuer=%s)", config.issuer)

    def sign(
        self,
        payload: dict[str, Any],
        purpose: TokenPurpose,
        expires_in: timedelta | None = None,
    ) -> str:
        """
        Sign a payload.

        Args:
            payload: Caller fields (must not use iss/iat/exp/purpose)
            purpose: Token purpose written to the `purpose` claim
            expires_in: Lifetime; None means the token never expires

        Raises:
            SigningError: No secret or issuer configured
        """
        config = self._config
        if not config.secret:
            raise SigningError("no jwt secret found")
        if not config.issuer:
            raise SigningError("no jwt issuer found")

        clashing = RESERVED_CLAIMS.intersection(payload)
        if clashing:
            raise ValueError(f"payload uses reserved claims: {sorted(clashing)}")

        now = self._now()
        claims: dict[str, Any] = {
            **payload,
            PURPOSE_CLAIM: TokenPurpose(purpose).value,
            "iss": config.issuer,
            "iat": int(now.timestamp()),
        }
        if expires_in is not None:
            claims["exp"] = int((now + expires_in).timestamp())

        return jwt.encode(claims, config.secret, algorithm=config.algorithm)

    def verify(self, token: str, expected_purpose: TokenPurpose) -> dict[str, Any]:
        """
        Decode and validate a token.

        Returns:
            The caller payload, without iss/iat/exp/purpose

        Raises:
            SigningError: No secret configured
            InvalidTokenError: Bad signature, issuer or format
            ExpiredTokenError: Token has expired
            MalformedPayloadError: Missing or unexpected purpose
        """
        config = self._config
        if not config.secret:
            raise SigningError("no jwt secret found")

        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                config.secret,
                algorithms=[config.algorithm],
                issuer=config.issuer or None,
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected token: %s", e)
            raise InvalidTokenError(f"Invalid token: {e}") from e

        # Expiry is checked against the injected clock, not the wall clock
        expires_at = claims.get("exp")
        if expires_at is not None:
            if not isinstance(expires_at, (int, float)):
                raise InvalidTokenError("Invalid token: exp claim is not a timestamp")
            if self._now().timestamp() >= expires_at:
                raise ExpiredTokenError("Token has expired")

        purpose = claims.get(PURPOSE_CLAIM)
        if purpose is None:
            raise MalformedPayloadError("no purpose provided")
        if purpose != TokenPurpose(expected_purpose).value:
            raise MalformedPayloadError(
                f"Expected {TokenPurpose(expected_purpose).value} token, got {purpose}"
            )

        return {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS}

    def load(self, token: str, purpose: TokenPurpose, model: type[ModelT]) -> ModelT:
        """Verify a token and validate its payload against a model."""
        payload = self.verify(token, purpose)
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise MalformedPayloadError(
                f"Invalid {TokenPurpose(purpose).value} payload: {e.error_count()} error(s)"
            ) from e


# =============================================================================
# Token Creation
# =============================================================================

def create_access_token(
    codec: TokenCodec,
    account_id: str,
    role: UserType,
    email_verified: bool,
    expires_in: timedelta,
) -> str:
    """Create an access token."""
    data = AccessTokenData(id=account_id, role=role, email_verified=email_verified)
    return codec.sign(data.to_claims(), TokenPurpose.ACCESS, expires_in)


def create_refresh_token(
    codec: TokenCodec,
    account_id: str,
    token_version: int,
    role: UserType,
    expires_in: timedelta,
) -> str:
    """Create a refresh token bound to the account's current token version."""
    data = RefreshTokenData(id=account_id, token_version=token_version, role=role)
    return codec.sign(data.to_claims(), TokenPurpose.REFRESH, expires_in)


def decode_access_token(codec: TokenCodec, token: str) -> AccessTokenData:
    return codec.load(token, TokenPurpose.ACCESS, AccessTokenData)


def decode_refresh_token(codec: TokenCodec, token: str) -> RefreshTokenData:
    return codec.load(token, TokenPurpose.REFRESH, RefreshTokenData)
