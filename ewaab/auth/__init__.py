"""
Authentication and authorization core.

Design principles:
1. Every token is a purpose-tagged JWT from one codec
2. A request resolves to one immutable Principal (guest if no token)
3. Authorization is a yes/no decision; denial is never an exception
4. Revocation bumps a per-account token version, nothing is stored per token
"""

from ewaab.auth.capabilities import (
    AccessType,
    PostType,
    ResourceKind,
    UserType,
    POST_VIEW_ACCESS,
    POST_WRITE_ACCESS,
    can_view,
    can_write,
)
from ewaab.auth.context import Principal, get_token, resolve_principal
from ewaab.auth.jwt import CodecConfig, TokenCodec, TokenPurpose
from ewaab.auth.media import issue_media_token, verify_media_token
from ewaab.auth.policies import (
    decide,
    check_post_access,
    check_comment_access,
    check_message_access,
    check_message_group_access,
    check_notification_access,
    verify_guest,
    verify_logged_in,
    verify_admin,
)
from ewaab.auth.refresh import RefreshManager, TokenBundle
from ewaab.auth.login import hash_password, verify_password
from ewaab.auth.dependencies import AuthServices, get_principal
from ewaab.auth.routes import router as auth_router, refresh_router

__all__ = [
    # Main interface
    "decide",
    "check_post_access",
    "check_comment_access",
    "check_message_access",
    "check_message_group_access",
    "check_notification_access",
    "verify_guest",
    "verify_logged_in",
    "verify_admin",
    "Principal",
    "get_token",
    "resolve_principal",
    # Types
    "AccessType",
    "PostType",
    "ResourceKind",
    "UserType",
    "POST_VIEW_ACCESS",
    "POST_WRITE_ACCESS",
    "can_view",
    "can_write",
    # Tokens
    "CodecConfig",
    "TokenCodec",
    "TokenPurpose",
    "RefreshManager",
    "TokenBundle",
    "issue_media_token",
    "verify_media_token",
    "hash_password",
    "verify_password",
    # FastAPI
    "AuthServices",
    "get_principal",
    "auth_router",
    "refresh_router",
]
