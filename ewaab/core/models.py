"""
Core data models for the ewaab backend.

Enums shared by the auth core and the records it reads through the
storage interfaces: durable accounts, visitor codes, and the ownership
facts of posts, comments, messages, message groups and notifications.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ewaab.core.utils import utc_now


# =============================================================================
# Enums
# =============================================================================


class UserType(str, Enum):
    """Coarse permission class carried in every access token."""

    GUEST = "guest"              # No token at all
    VISITOR = "visitor"          # Disposable code-based identity
    USER = "user"
    MENTOR = "mentor"
    THIRD_PARTY = "thirdParty"
    ADMIN = "admin"


class PostType(str, Enum):
    """Post category, used as the resource subtype for posts."""

    COMMUNITY = "community"
    MENTOR_NEWS = "mentorNews"
    JOBS = "jobs"
    ENCOURAGE_HER = "encourageHer"
    EH_PARTICIPANT_NEWS = "ehParticipantNews"


class AccessType(str, Enum):
    """Requested operation kind."""

    VIEW = "view"
    ADD = "add"
    MODIFY = "modify"


class ResourceKind(str, Enum):
    """Resource kinds the decision layer knows about."""

    POST = "post"
    COMMENT = "comment"
    MESSAGE = "message"
    MESSAGE_GROUP = "messageGroup"
    NOTIFICATION = "notification"


# =============================================================================
# Records
# =============================================================================


class AccountRecord(BaseModel):
    """Durable account as stored in the users table."""

    id: str
    email: str
    username: str
    name: str = ""
    password_hash: str
    user_type: UserType = UserType.USER
    email_verified: bool = False
    token_version: int = 0
    created_at: datetime = Field(default_factory=utc_now)


class UserCodeRecord(BaseModel):
    """Visitor code. `code_hash` is a salted hash of the full `id:secret` code."""

    id: str
    name: str
    code_hash: str
    token_version: int = 0
    created_at: datetime = Field(default_factory=utc_now)


class ResourceRecord(BaseModel):
    """
    Ownership facts the decision layer needs about one resource.

    Only the fields relevant to the resource kind are populated:
    - post: owner_id, subtype
    - comment: owner_id, parent_id (the post)
    - message: owner_id (sender), group_id (recipient)
    - messageGroup: member_ids
    - notification: owner_id (target user)
    """

    model_config = {"frozen": True}

    id: str
    owner_id: str | None = None
    subtype: str | None = None
    parent_id: str | None = None
    group_id: str | None = None
    member_ids: tuple[str, ...] = ()
