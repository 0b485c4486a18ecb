from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ewaab.auth.context import Principal, resolve_principal
from ewaab.auth.errors import TokenError
from ewaab.auth.jwt import TokenCodec
from ewaab.auth.policies import verify_admin
from ewaab.auth.refresh import RefreshManager
from ewaab.config import Settings
from ewaab.storage.base import AccountStore, ResourceLookup, TokenVersionStore

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthServices:
    """Everything the auth routes need, built once at startup."""

    settings: Settings
    codec: TokenCodec
    accounts: AccountStore
    versions: TokenVersionStore
    resources: ResourceLookup
    refresh: RefreshManager


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def get_auth_services(request: Request) -> AuthServices:
    services = getattr(request.app.state, "auth", None)
    if services is None:
        raise RuntimeError("auth services are not configured on this app")
    return services


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    services: AuthServices = Depends(get_auth_services),
) -> Principal:
    """Resolve the request principal. No bearer token means a guest."""
    if credentials is None:
        return Principal.guest()
    try:
        return resolve_principal(f"Bearer {credentials.credentials}", services.codec)
    except TokenError as exc:
        raise _unauthorized(str(exc)) from exc


async def require_admin(
    principal: Principal = Depends(get_principal),
    services: AuthServices = Depends(get_auth_services),
) -> Principal:
    """
    An admin account.

    While ENABLE_INITIALIZATION is on, any caller is let through as a
    pseudo-admin so the first admin account can be set up.
    """
    if verify_admin(principal):
        return principal
    if services.settings.enable_initialization:
        verify_admin(principal, execute_admin=True, enable_initialization=True)
        return principal
    if not principal.is_authenticated:
        raise _unauthorized("not logged in")
    raise _forbidden("user not admin")
