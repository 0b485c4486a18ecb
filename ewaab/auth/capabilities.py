"""
User types, post types and access tables.

This defines WHAT each kind of account may see and write, not HOW we
check it. Ownership and per-resource decisions happen in policies.py.
"""

from ewaab.core.models import AccessType, PostType, ResourceKind, UserType

__all__ = [
    "AccessType",
    "PostType",
    "ResourceKind",
    "UserType",
    "DURABLE_USER_TYPES",
    "POST_VIEW_ACCESS",
    "POST_WRITE_ACCESS",
    "can_view",
    "can_write",
    "viewable_post_types",
]


# Durable accounts, i.e. anything with a row in the users table
DURABLE_USER_TYPES: frozenset[UserType] = frozenset({
    UserType.USER,
    UserType.MENTOR,
    UserType.THIRD_PARTY,
    UserType.ADMIN,
})


# =============================================================================
# Post Access Tables
# =============================================================================


# Which post types each user type may read
POST_VIEW_ACCESS: dict[UserType, frozenset[PostType]] = {
    UserType.GUEST: frozenset(),
    UserType.VISITOR: frozenset({PostType.JOBS}),
    UserType.USER: frozenset(PostType),
    UserType.MENTOR: frozenset({PostType.COMMUNITY, PostType.MENTOR_NEWS}),
    UserType.THIRD_PARTY: frozenset({PostType.MENTOR_NEWS}),
    UserType.ADMIN: frozenset(PostType),
}


# Which post types each user type may create
POST_WRITE_ACCESS: dict[UserType, frozenset[PostType]] = {
    UserType.GUEST: frozenset(),
    UserType.VISITOR: frozenset({PostType.JOBS}),
    UserType.USER: frozenset({PostType.COMMUNITY}),
    UserType.MENTOR: frozenset({PostType.COMMUNITY, PostType.MENTOR_NEWS}),
    UserType.THIRD_PARTY: frozenset(),
    UserType.ADMIN: frozenset(PostType),
}


def can_view(user_type: UserType | str, post_type: PostType | str) -> bool:
    """Check if a user type may read posts of a given type."""
    user_type = UserType(user_type)
    post_type = PostType(post_type)
    return post_type in POST_VIEW_ACCESS[user_type]


def can_write(user_type: UserType | str, post_type: PostType | str) -> bool:
    """Check if a user type may create posts of a given type."""
    user_type = UserType(user_type)
    post_type = PostType(post_type)
    return post_type in POST_WRITE_ACCESS[user_type]


def viewable_post_types(user_type: UserType | str) -> list[PostType]:
    """Post types a user type may read, in declaration order (for search filters)."""
    allowed = POST_VIEW_ACCESS[UserType(user_type)]
    return [post_type for post_type in PostType if post_type in allowed]
