"""
Media access tokens.

The file server cannot rely on an Authorization header (images load
through plain <img> tags), so it accepts a separate, narrowly scoped
token as a query parameter or cookie. A token either names one media
object or, with no mediaId, covers the bearer's own profile media.
Matching the token against the requested object is done by the file
server through `MediaTokenData.permits`.
"""

from __future__ import annotations

from datetime import timedelta

from ewaab.auth.context import Principal
from ewaab.auth.errors import MalformedPayloadError
from ewaab.auth.jwt import MediaTokenData, TokenCodec, TokenPurpose
from ewaab.core.models import UserType

MEDIA_KIND = "media"


def create_media_token(
    codec: TokenCodec,
    account_id: str,
    role: UserType,
    media_id: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """Create a media token. `expires_in=None` makes it non-expiring."""
    data = MediaTokenData(id=account_id, role=role, media_id=media_id)
    return codec.sign(data.to_claims(), TokenPurpose.MEDIA, expires_in)


def issue_media_token(
    codec: TokenCodec,
    principal: Principal,
    media_id: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """Issue a media token for the current principal."""
    if not principal.is_authenticated:
        raise ValueError("cannot issue a media token for a guest")
    return create_media_token(codec, principal.id, principal.role, media_id, expires_in)


def verify_media_token(codec: TokenCodec, token: str) -> MediaTokenData:
    """
    Verify a media token.

    Raises:
        InvalidTokenError / ExpiredTokenError: as for any token
        MalformedPayloadError: wrong purpose, or kind is not media
    """
    payload = codec.verify(token, TokenPurpose.MEDIA)
    kind = payload.get("kind")
    if kind != MEDIA_KIND:
        raise MalformedPayloadError(f"invalid media type {kind} provided")
    try:
        return MediaTokenData.model_validate(payload)
    except ValueError as e:
        raise MalformedPayloadError(f"Invalid media payload: {e}") from e
