"""
Core module - shared enums, records and helpers.

This module contains:
- models: user/post/access enums and the records read by the auth core
- utils: Shared utility functions
"""

from ewaab.core.models import (
    AccessType,
    AccountRecord,
    PostType,
    ResourceKind,
    ResourceRecord,
    UserCodeRecord,
    UserType,
)
from ewaab.core.utils import generate_id, utc_now

__all__ = [
    "AccessType",
    "AccountRecord",
    "PostType",
    "ResourceKind",
    "ResourceRecord",
    "UserCodeRecord",
    "UserType",
    "generate_id",
    "utc_now",
]
