"""
Tests for media access tokens.
"""

from datetime import timedelta

import pytest

from ewaab.auth.errors import ExpiredTokenError, MalformedPayloadError
from ewaab.auth.jwt import MediaTokenData, TokenPurpose
from ewaab.auth.media import create_media_token, issue_media_token, verify_media_token
from ewaab.core.models import UserType


class TestIssueVerify:
    def test_scoped_token(self, codec, user_principal):
        token = issue_media_token(codec, user_principal, "media_42")

        data = verify_media_token(codec, token)

        assert data == MediaTokenData(id="u1", role=UserType.USER, media_id="media_42")
        assert data.kind == "media"

    def test_unscoped_token_never_expires_by_default(self, codec, clock, user_principal):
        token = issue_media_token(codec, user_principal)

        clock.advance(timedelta(days=365))

        assert verify_media_token(codec, token).media_id is None

    def test_expiration(self, codec, clock):
        token = create_media_token(codec, "u1", UserType.USER, expires_in=timedelta(hours=1))

        clock.advance(timedelta(hours=1))

        with pytest.raises(ExpiredTokenError):
            verify_media_token(codec, token)

    def test_guest_cannot_get_one(self, codec, guest):
        with pytest.raises(ValueError):
            issue_media_token(codec, guest, "media_42")

    def test_kind_must_be_media(self, codec):
        token = codec.sign({"id": "u1", "role": "user", "kind": "avatar"}, TokenPurpose.MEDIA)

        with pytest.raises(MalformedPayloadError):
            verify_media_token(codec, token)

    def test_access_token_is_not_a_media_token(self, codec):
        token = codec.sign({"id": "u1", "role": "user", "kind": "media"}, TokenPurpose.ACCESS)

        with pytest.raises(MalformedPayloadError):
            verify_media_token(codec, token)

    def test_wire_fields(self, codec):
        token = create_media_token(codec, "u1", UserType.USER, "media_42")

        assert codec.verify(token, TokenPurpose.MEDIA) == {
            "id": "u1",
            "role": "user",
            "kind": "media",
            "mediaId": "media_42",
        }


class TestPermits:
    def test_scoped_token_grants_only_its_object(self):
        data = MediaTokenData(id="u1", role=UserType.USER, media_id="media_42")

        assert data.permits("media_42")
        assert not data.permits("media_43")
        assert not data.permits("media_43", owner_id="u1")

    def test_unscoped_token_grants_own_media(self):
        data = MediaTokenData(id="u1", role=UserType.USER)

        assert data.permits("avatar_u1", owner_id="u1")
        assert not data.permits("avatar_u2", owner_id="u2")
        assert not data.permits("avatar_u1")
