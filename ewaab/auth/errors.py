"""
Auth error taxonomy.

Plain authorization denial is never an exception: decision functions
return False. Everything here is raised for tampering, expiry, revoked
sessions, missing records or caller bugs.
"""


class AuthError(Exception):
    """Base exception for the auth core."""
    pass


# =============================================================================
# Token errors
# =============================================================================

class TokenError(AuthError):
    """Base exception for token errors."""
    pass


class SigningError(TokenError):
    """No secret or issuer configured, so nothing can be signed."""
    pass


class InvalidTokenError(TokenError):
    """Token has a bad signature, bad issuer or is not a JWT at all."""
    pass


class ExpiredTokenError(TokenError):
    """Token has expired."""
    pass


class MalformedPayloadError(TokenError):
    """Token verified but its payload has the wrong purpose or missing fields."""
    pass


class StaleTokenError(TokenError):
    """Refresh token version no longer matches the account (sessions revoked)."""
    pass


# =============================================================================
# Lookup / contract errors
# =============================================================================

class AccountNotFoundError(AuthError):
    """Account or visitor code referenced by a token no longer exists."""
    pass


class ResourceNotFoundError(AuthError):
    """Resource lookup missed during an authorization decision."""

    def __init__(self, kind: str, resource_id: str):
        super().__init__(f"cannot find {kind} with id {resource_id}")
        self.kind = kind
        self.resource_id = resource_id


class MissingResourceIdError(AuthError):
    """Caller asked for a view/modify decision without a resource id."""
    pass


class UnsupportedAccessTypeError(AuthError):
    """Access type is not one of view, add, modify."""
    pass


# =============================================================================
# Login errors
# =============================================================================

class InvalidCredentialsError(AuthError):
    """Unknown account, wrong password or wrong visitor code."""
    pass


class EmailNotVerifiedError(AuthError):
    """Durable account tried to log in before verifying its email."""
    pass


class InitializationDisabledError(AuthError):
    """Pseudo-admin execution requested while initialization is disabled."""
    pass
