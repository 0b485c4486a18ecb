"""
Policies - the authorization decision layer.

Every resolver or REST handler asks one question:
    allowed = await decide(principal, AccessType.MODIFY, ResourceKind.POST, post_id, lookup)

Design:
- Denial is a plain False. Callers choose the user-facing message.
- Guests are denied before anything is looked up, and so are durable
  accounts that have not verified their email.
- `add` decisions are role based. The one exception is commenting, which
  needs view access to the parent post.
- Admins bypass every view/modify check.
- Everything else is an ownership / membership / post-type check over a
  record fetched at most once per (kind, id) within one decision.
"""

from __future__ import annotations

import logging

from ewaab.auth.capabilities import (
    AccessType,
    PostType,
    ResourceKind,
    can_view,
    can_write,
)
from ewaab.auth.context import Principal
from ewaab.auth.errors import (
    InitializationDisabledError,
    MissingResourceIdError,
    ResourceNotFoundError,
    UnsupportedAccessTypeError,
)
from ewaab.core.models import ResourceRecord
from ewaab.storage.base import ResourceLookup

logger = logging.getLogger(__name__)


# A resource is either an id (looked up) or a record the caller already has
ResourceRef = str | ResourceRecord | None


# =============================================================================
# Coarse predicates
# =============================================================================


def verify_guest(principal: Principal) -> bool:
    """Any token at all, visitor codes included."""
    return principal.is_authenticated


def verify_logged_in(principal: Principal, check_email_verified: bool = True) -> bool:
    """A durable account (not a visitor), optionally with a verified email."""
    if not principal.is_authenticated or principal.is_visitor:
        return False
    return principal.email_verified if check_email_verified else True


def verify_admin(
    principal: Principal,
    execute_admin: bool = False,
    enable_initialization: bool = False,
) -> bool:
    """
    Check for an admin principal.

    `execute_admin` is the bootstrap path used to create the very first
    admin account: it is honoured only while initialization is enabled.
    """
    if execute_admin:
        if not enable_initialization:
            raise InitializationDisabledError(
                "cannot use is-admin when initialization is not enabled"
            )
        logger.warning("Executing as pseudo-admin (initialization mode)")
        return True
    return verify_logged_in(principal) and principal.is_admin


# =============================================================================
# Per-call lookup cache
# =============================================================================


class _RecordCache:
    """Resolve resource refs for one decision, never fetching the same one twice."""

    def __init__(self, lookup: ResourceLookup | None):
        self._lookup = lookup
        self._records: dict[tuple[ResourceKind, str], ResourceRecord] = {}

    async def get(self, kind: ResourceKind, resource: str | ResourceRecord) -> ResourceRecord:
        if isinstance(resource, ResourceRecord):
            self._records.setdefault((kind, resource.id), resource)
            return resource

        key = (kind, resource)
        if key not in self._records:
            if self._lookup is None:
                raise ValueError(f"a resource lookup is required to resolve {kind.value} {resource}")
            record = await self._lookup.lookup(kind, resource)
            if record is None:
                raise ResourceNotFoundError(kind.value, resource)
            self._records[key] = record
        return self._records[key]


# =============================================================================
# Helpers
# =============================================================================


def _access_type(access_type: AccessType | str) -> AccessType:
    try:
        return AccessType(access_type)
    except ValueError:
        raise UnsupportedAccessTypeError(f"unsupported access type {access_type!r}") from None


def _resource_id(kind: ResourceKind, resource: ResourceRef) -> str:
    if isinstance(resource, ResourceRecord):
        resource_id = resource.id
    else:
        resource_id = resource
    if not resource_id:
        raise MissingResourceIdError(f"{kind.value} id required for view / modify access")
    return resource_id


def _owns(principal: Principal, record: ResourceRecord) -> bool:
    return record.owner_id is not None and record.owner_id == principal.id


def _post_visible(principal: Principal, post: ResourceRecord) -> bool:
    try:
        return can_view(principal.role, post.subtype)
    except ValueError:
        logger.warning("Post %s has unknown post type %r", post.id, post.subtype)
        return False


def _add_allowed(
    principal: Principal,
    kind: ResourceKind,
    resource: ResourceRef,
    post_type: PostType | str | None,
) -> bool:
    if kind == ResourceKind.POST:
        if post_type is None and isinstance(resource, ResourceRecord):
            post_type = resource.subtype
        if post_type is None:
            raise MissingResourceIdError("post type required to add a post")
        return can_write(principal.role, post_type)
    if kind in (ResourceKind.MESSAGE, ResourceKind.MESSAGE_GROUP):
        return True
    if kind == ResourceKind.NOTIFICATION:
        # Only the system creates notifications
        return False
    raise UnsupportedAccessTypeError(f"add is not a standalone decision for {kind.value}")


# =============================================================================
# Main Interface
# =============================================================================


async def decide(
    principal: Principal,
    access_type: AccessType | str,
    kind: ResourceKind | str,
    resource: ResourceRef = None,
    lookup: ResourceLookup | None = None,
    *,
    post_type: PostType | str | None = None,
) -> bool:
    """
    Decide whether a principal may view / add / modify a resource.

    Args:
        principal: Resolved request principal
        access_type: view, add or modify
        kind: Resource kind
        resource: Resource id (looked up) or an already-known ResourceRecord.
            For adding a comment, this is the parent post.
        lookup: Ownership lookup collaborator, needed when `resource` is an id
        post_type: Post type being created (add on posts only)

    Returns:
        True if allowed, False if denied

    Raises:
        UnsupportedAccessTypeError: access_type is not view / add / modify
        MissingResourceIdError: view / modify without a resource id
        ResourceNotFoundError: the lookup missed
    """
    access_type = _access_type(access_type)
    kind = ResourceKind(kind)

    if not principal.is_authenticated:
        return False
    if principal.is_durable and not principal.email_verified:
        return False

    if access_type == AccessType.ADD:
        if kind == ResourceKind.COMMENT:
            # Commenting needs view access to the post being commented on
            return await decide(principal, AccessType.VIEW, ResourceKind.POST, resource, lookup)
        return _add_allowed(principal, kind, resource, post_type)

    _resource_id(kind, resource)

    if principal.is_admin:
        return True

    records = _RecordCache(lookup)
    record = await records.get(kind, resource)

    if kind == ResourceKind.POST:
        if access_type == AccessType.VIEW:
            return _post_visible(principal, record)
        return _owns(principal, record)

    if kind == ResourceKind.COMMENT:
        if access_type == AccessType.VIEW:
            if not record.parent_id:
                logger.warning("Comment %s has no parent post", record.id)
                return False
            post = await records.get(ResourceKind.POST, record.parent_id)
            return _post_visible(principal, post)
        return _owns(principal, record)

    if kind == ResourceKind.MESSAGE:
        if access_type == AccessType.VIEW:
            return principal.id in (record.owner_id, record.group_id)
        return _owns(principal, record)

    if kind == ResourceKind.MESSAGE_GROUP:
        return principal.id in record.member_ids

    if kind == ResourceKind.NOTIFICATION:
        return _owns(principal, record)

    raise UnsupportedAccessTypeError(f"{access_type.value} is not supported for {kind.value}")


# =============================================================================
# Per-kind shortcuts
# =============================================================================


async def check_post_access(
    principal: Principal,
    access_type: AccessType | str,
    resource: ResourceRef = None,
    lookup: ResourceLookup | None = None,
    post_type: PostType | str | None = None,
) -> bool:
    return await decide(principal, access_type, ResourceKind.POST, resource, lookup, post_type=post_type)


async def check_comment_access(
    principal: Principal,
    access_type: AccessType | str,
    resource: ResourceRef = None,
    lookup: ResourceLookup | None = None,
) -> bool:
    return await decide(principal, access_type, ResourceKind.COMMENT, resource, lookup)


async def check_message_access(
    principal: Principal,
    access_type: AccessType | str,
    resource: ResourceRef = None,
    lookup: ResourceLookup | None = None,
) -> bool:
    return await decide(principal, access_type, ResourceKind.MESSAGE, resource, lookup)


async def check_message_group_access(
    principal: Principal,
    access_type: AccessType | str,
    resource: ResourceRef = None,
    lookup: ResourceLookup | None = None,
) -> bool:
    return await decide(principal, access_type, ResourceKind.MESSAGE_GROUP, resource, lookup)


async def check_notification_access(
    principal: Principal,
    access_type: AccessType | str,
    resource: ResourceRef = None,
    lookup: ResourceLookup | None = None,
) -> bool:
    return await decide(principal, access_type, ResourceKind.NOTIFICATION, resource, lookup)


__all__ = [
    "ResourceRef",
    "decide",
    "check_post_access",
    "check_comment_access",
    "check_message_access",
    "check_message_group_access",
    "check_notification_access",
    "verify_guest",
    "verify_logged_in",
    "verify_admin",
]
