"""
Principal - the "who" for each request.

This is the lightweight object passed to resolvers and route handlers.
It is built once from a verified access token and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass

from ewaab.auth.capabilities import DURABLE_USER_TYPES, UserType
from ewaab.auth.errors import MalformedPayloadError
from ewaab.auth.jwt import AccessTokenData, TokenCodec, decode_access_token


BEARER_PREFIX = "Bearer"


@dataclass(frozen=True)
class Principal:
    """
    Authenticated identity attached to a request.

    Usage in handlers:
        if not principal.is_authenticated:
            raise HTTPException(401, "not logged in")
        allowed = await decide(principal, AccessType.MODIFY, ResourceKind.POST, post_id, lookup)
    """

    id: str | None = None
    role: UserType = UserType.GUEST
    email_verified: bool = False

    def __post_init__(self):
        if self.role == UserType.GUEST and self.id is not None:
            raise ValueError("guest principal cannot carry an id")
        if self.role != UserType.GUEST and not self.id:
            raise ValueError(f"{self.role.value} principal requires an id")

    @property
    def is_authenticated(self) -> bool:
        """Is there any token behind this request (visitors included)?"""
        return self.role != UserType.GUEST

    @property
    def is_guest(self) -> bool:
        return self.role == UserType.GUEST

    @property
    def is_visitor(self) -> bool:
        return self.role == UserType.VISITOR

    @property
    def is_durable(self) -> bool:
        """Backed by a users-table account rather than a visitor code."""
        return self.role in DURABLE_USER_TYPES

    @property
    def is_admin(self) -> bool:
        return self.role == UserType.ADMIN

    @classmethod
    def guest(cls) -> Principal:
        """Create a guest principal (no token)."""
        return cls()

    @classmethod
    def from_token_data(cls, data: AccessTokenData) -> Principal:
        return cls(id=data.id, role=data.role, email_verified=data.email_verified)


# =============================================================================
# Principal Resolution
# =============================================================================


def get_token(authorization: str | None) -> str:
    """
    Extract the bearer token from an Authorization header value.

    Returns an empty string when there is no `Bearer <token>` value.
    """
    if not authorization:
        return ""
    parts = authorization.split(" ")
    if len(parts) < 2 or parts[0] != BEARER_PREFIX:
        return ""
    return parts[1]


def resolve_principal(authorization: str | None, codec: TokenCodec) -> Principal:
    """
    Resolve the principal for a request.

    No bearer token means a guest. A token that fails verification
    propagates its TokenError so the caller can ask for re-authentication.
    """
    token = get_token(authorization)
    if not token:
        return Principal.guest()
    data = decode_access_token(codec, token)
    if data.role == UserType.GUEST:
        raise MalformedPayloadError("access token cannot carry the guest role")
    return Principal.from_token_data(data)
